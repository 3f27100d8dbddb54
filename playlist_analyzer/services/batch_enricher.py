"""Chunked duration lookups merged back by identifier."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from functools import partial
from typing import Awaitable, Callable, Protocol

import httpx

from playlist_analyzer.core.exceptions import ConfigurationError, SourceError
from playlist_analyzer.services.duration_codec import parse_duration
from playlist_analyzer.services.retrying_fetcher import RetryingFetcher

logger = logging.getLogger(__name__)

DetailFn = Callable[[list[str]], Awaitable[Mapping[str, str]]]


class DetailSource(Protocol):
    async def fetch_details(self, ids: list[str]) -> Mapping[str, str]: ...


def chunked(ids: Sequence[str], size: int) -> list[list[str]]:
    """Split ``ids`` into consecutive chunks of at most ``size`` entries."""

    if size < 1:
        raise ConfigurationError(f"Batch size must be positive, got {size}")
    return [list(ids[start : start + size]) for start in range(0, len(ids), size)]


class BatchEnricher:
    """Looks up durations batch by batch; unresolved ids get 0 seconds."""

    def __init__(self, fetcher: RetryingFetcher, *, batch_size: int = 50) -> None:
        if batch_size < 1:
            raise ConfigurationError(f"Batch size must be positive, got {batch_size}")
        self._fetcher = fetcher
        self.batch_size = batch_size
        self.detail_requests = 0

    async def enrich(self, ids: Sequence[str], detail_fn: DetailFn) -> dict[str, int]:
        durations: dict[str, int] = {}
        batches = chunked(ids, self.batch_size)

        for index, chunk in enumerate(batches, start=1):
            try:
                raw = await self._fetcher.call(partial(detail_fn, chunk))
            except SourceError:
                raise
            except (httpx.HTTPError, ValueError, AttributeError, TypeError) as exc:
                raise SourceError(f"Detail request failed: {exc}") from exc
            self.detail_requests += 1
            if not isinstance(raw, Mapping):
                raise SourceError(f"Detail request returned {type(raw).__name__}, expected a mapping")

            missing = 0
            for video_id in chunk:
                encoded = raw.get(video_id)
                if encoded is None:
                    missing += 1
                durations[video_id] = parse_duration(encoded)

            logger.debug(
                "Batch %s/%s resolved %s of %s ids",
                index,
                len(batches),
                len(chunk) - missing,
                len(chunk),
            )

        return durations


async def enrich(
    ids: Sequence[str],
    detail_fn: DetailFn,
    batch_size: int,
    *,
    fetcher: RetryingFetcher,
) -> dict[str, int]:
    """Return a mapping with one duration per id in ``ids``."""

    return await BatchEnricher(fetcher, batch_size=batch_size).enrich(ids, detail_fn)
