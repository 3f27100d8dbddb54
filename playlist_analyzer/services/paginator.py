"""Collect every entry of a paged source into one ordered list."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from functools import partial
from typing import Any, Callable, Protocol

import httpx

from playlist_analyzer.core.exceptions import SourceError
from playlist_analyzer.schema.playlist import Page, PlaylistItem
from playlist_analyzer.services.retrying_fetcher import RetryingFetcher

logger = logging.getLogger(__name__)

EntryParser = Callable[[Mapping[str, Any], int], PlaylistItem | None]


class PagedSource(Protocol):
    async def fetch_page(self, token: str | None) -> Page: ...


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime; None when unreadable."""

    if not value or not isinstance(value, str):
        return None
    value = value.strip()
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        logger.debug("Failed to parse datetime", extra={"value": value})
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _object(value: Any, name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise SourceError(f"Malformed playlist entry: {name} is not an object")
    return value


def playlist_item_from_entry(entry: Mapping[str, Any], position: int) -> PlaylistItem | None:
    """Build a PlaylistItem from a YouTube ``playlistItems`` resource.

    Deleted or private placeholders carry no ``contentDetails.videoId`` and are
    skipped by returning None. Entries that are not objects raise SourceError.
    """

    entry = _object(entry, "entry")
    details = _object(entry.get("contentDetails"), "contentDetails")
    snippet = _object(entry.get("snippet"), "snippet")

    video_id = details.get("videoId")
    if not video_id or not isinstance(video_id, str):
        return None

    channel = snippet.get("videoOwnerChannelTitle") or snippet.get("channelTitle") or None
    published = details.get("videoPublishedAt") or snippet.get("publishedAt")

    return PlaylistItem(
        video_id=video_id,
        title=str(snippet.get("title") or ""),
        channel=str(channel) if channel else None,
        published_at=parse_timestamp(published),
        position=position,
    )


class Paginator:
    """Drives a paged source until it stops handing out continuation tokens."""

    def __init__(
        self,
        fetcher: RetryingFetcher,
        *,
        parse_entry: EntryParser = playlist_item_from_entry,
    ) -> None:
        self._fetcher = fetcher
        self._parse_entry = parse_entry
        self.page_requests = 0

    async def collect_all(self, source: PagedSource) -> list[PlaylistItem]:
        items: list[PlaylistItem] = []
        requested: set[str] = set()
        token: str | None = None
        dropped = 0

        while True:
            try:
                page = await self._fetcher.call(partial(source.fetch_page, token))
            except SourceError:
                raise
            except (httpx.HTTPError, ValueError, AttributeError, TypeError) as exc:
                raise SourceError(f"Page request failed: {exc}") from exc
            self.page_requests += 1

            for entry in page.items:
                try:
                    item = self._parse_entry(entry, len(items) + 1)
                except (AttributeError, TypeError) as exc:
                    raise SourceError(f"Malformed playlist entry: {exc}") from exc
                if item is None:
                    dropped += 1
                    continue
                items.append(item)

            if token is not None:
                requested.add(token)
            token = page.next_token or None
            if token is None:
                break
            if token in requested:
                raise SourceError(f"Paged source repeated continuation token {token!r}")

        logger.info(
            "Collected %s items over %s pages (%s unresolvable entries skipped)",
            len(items),
            self.page_requests,
            dropped,
        )
        return items


async def collect_all(
    source: PagedSource,
    *,
    fetcher: RetryingFetcher,
    parse_entry: EntryParser = playlist_item_from_entry,
) -> list[PlaylistItem]:
    """Fetch every page of ``source`` and return its resolvable entries in order."""

    return await Paginator(fetcher, parse_entry=parse_entry).collect_all(source)
