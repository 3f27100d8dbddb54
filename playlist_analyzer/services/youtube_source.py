"""YouTube Data API adapters for the paged source and detail lookup contracts."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qs, urlparse

import httpx

from playlist_analyzer.core.config import Settings
from playlist_analyzer.core.exceptions import ConfigurationError, SourceError, TransientSourceError
from playlist_analyzer.schema.playlist import Page

logger = logging.getLogger(__name__)


def extract_playlist_id(raw: str) -> str:
    """Return the playlist id from a playlist/watch URL or a bare id."""

    identifier = (raw or "").strip()
    if not identifier:
        raise ConfigurationError("Empty playlist identifier")

    if identifier.startswith("http://") or identifier.startswith("https://"):
        lists = parse_qs(urlparse(identifier).query).get("list")
        if lists and lists[-1].strip():
            return lists[-1].strip()
    return identifier


def _resource_list(payload: Mapping[str, Any], *nested: str) -> list[Mapping[str, Any]]:
    """Return ``payload["items"]`` after checking each resource (and its ``nested`` parts) is an object."""

    items = payload.get("items")
    if items is None:
        return []
    if not isinstance(items, list):
        raise SourceError("Invalid response from YouTube Data API: 'items' is not a list")

    for resource in items:
        if not isinstance(resource, Mapping):
            raise SourceError("Invalid response from YouTube Data API: resource is not an object")
        for key in nested:
            part = resource.get(key)
            if part is not None and not isinstance(part, Mapping):
                raise SourceError(f"Invalid response from YouTube Data API: '{key}' is not an object")
    return items


def _require_api_key(settings: Settings) -> str:
    if not settings.youtube_api_key:
        raise ConfigurationError("YouTube access requires APP_YOUTUBE_API_KEY")
    return settings.youtube_api_key


async def _get_json(client: httpx.AsyncClient, url: str, params: Mapping[str, str], timeout: float) -> dict[str, Any]:
    try:
        response = await client.get(url, params=params, timeout=timeout)
    except httpx.TransportError as exc:
        raise SourceError(f"Unable to contact YouTube Data API: {exc}") from exc

    if response.status_code >= 500:
        raise TransientSourceError(
            f"YouTube Data API returned HTTP {response.status_code}",
            status_code=response.status_code,
        )
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SourceError(f"HTTP {response.status_code}: {response.text[:500]}") from exc

    try:
        payload = response.json()
    except ValueError as exc:
        raise SourceError("Invalid response from YouTube Data API") from exc
    if not isinstance(payload, dict):
        raise SourceError("Invalid response from YouTube Data API")
    return payload


class YouTubePlaylistSource:
    """Pages through ``playlistItems`` for one playlist."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings, playlist_id: str) -> None:
        self._client = client
        self._settings = settings
        self._api_key = _require_api_key(settings)
        self.playlist_id = playlist_id

    async def fetch_page(self, token: str | None) -> Page:
        params = {
            "part": "contentDetails,snippet",
            "playlistId": self.playlist_id,
            "maxResults": str(self._settings.page_size),
            "key": self._api_key,
        }
        if token:
            params["pageToken"] = token

        payload = await _get_json(
            self._client,
            f"{self._settings.youtube_api_base}/playlistItems",
            params,
            self._settings.request_timeout_seconds,
        )
        items = _resource_list(payload, "contentDetails", "snippet")
        logger.debug("Fetched playlist page", extra={"playlist_id": self.playlist_id, "count": len(items)})
        return Page(items=list(items), next_token=payload.get("nextPageToken") or None)


class YouTubeVideoDetails:
    """Looks up ``contentDetails.duration`` for up to 50 video ids per call."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = client
        self._settings = settings
        self._api_key = _require_api_key(settings)

    async def fetch_details(self, ids: list[str]) -> dict[str, str]:
        if not ids:
            return {}
        params = {
            "part": "contentDetails",
            "id": ",".join(ids),
            "key": self._api_key,
        }
        payload = await _get_json(
            self._client,
            f"{self._settings.youtube_api_base}/videos",
            params,
            self._settings.request_timeout_seconds,
        )

        durations: dict[str, str] = {}
        for video in _resource_list(payload, "contentDetails"):
            video_id = video.get("id")
            if not video_id or not isinstance(video_id, str):
                continue
            duration = (video.get("contentDetails") or {}).get("duration")
            durations[video_id] = duration if isinstance(duration, str) and duration else "PT0S"
        return durations
