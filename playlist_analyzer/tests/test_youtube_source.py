"""Tests for the YouTube Data API adapters."""

from __future__ import annotations

import httpx
import pytest

pytest_plugins = ("pytest_asyncio",)

from playlist_analyzer.core.config import Settings
from playlist_analyzer.core.exceptions import ConfigurationError, SourceError, TransientSourceError
from playlist_analyzer.services.youtube_source import (
    YouTubePlaylistSource,
    YouTubeVideoDetails,
    extract_playlist_id,
)


def _settings(**overrides) -> Settings:
    return Settings(youtube_api_key="dummy-key", **overrides)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_extract_playlist_id_from_watch_url() -> None:
    url = "https://www.youtube.com/watch?v=dX-3R2TH5qE&list=PLZVBmpM0E_DHlA9Fz4QznfPjUKPIz48I7"
    assert extract_playlist_id(url) == "PLZVBmpM0E_DHlA9Fz4QznfPjUKPIz48I7"


def test_extract_playlist_id_passes_through_raw_id() -> None:
    assert extract_playlist_id("  PL123 ") == "PL123"


def test_extract_playlist_id_rejects_empty() -> None:
    with pytest.raises(ConfigurationError):
        extract_playlist_id("   ")


@pytest.mark.asyncio
async def test_sources_require_api_key() -> None:
    async with _client(lambda request: httpx.Response(200, json={})) as client:
        with pytest.raises(ConfigurationError, match="APP_YOUTUBE_API_KEY"):
            YouTubePlaylistSource(client, Settings(youtube_api_key=None), "PL1")
        with pytest.raises(ConfigurationError, match="APP_YOUTUBE_API_KEY"):
            YouTubeVideoDetails(client, Settings(youtube_api_key=None))


@pytest.mark.asyncio
async def test_fetch_page_sends_expected_params() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"items": [{"contentDetails": {"videoId": "abc"}}], "nextPageToken": "NEXT"},
        )

    async with _client(handler) as client:
        source = YouTubePlaylistSource(client, _settings(), "PL1")
        first = await source.fetch_page(None)
        await source.fetch_page("NEXT")

    assert first.items == [{"contentDetails": {"videoId": "abc"}}]
    assert first.next_token == "NEXT"
    params = seen[0].url.params
    assert seen[0].url.path.endswith("/playlistItems")
    assert params["part"] == "contentDetails,snippet"
    assert params["playlistId"] == "PL1"
    assert params["maxResults"] == "50"
    assert params["key"] == "dummy-key"
    assert "pageToken" not in params
    assert seen[1].url.params["pageToken"] == "NEXT"


@pytest.mark.asyncio
async def test_fetch_page_without_token_ends_pagination() -> None:
    async with _client(lambda request: httpx.Response(200, json={"items": []})) as client:
        page = await YouTubePlaylistSource(client, _settings(), "PL1").fetch_page(None)
    assert page.items == []
    assert page.next_token is None


@pytest.mark.asyncio
async def test_server_error_is_transient() -> None:
    async with _client(lambda request: httpx.Response(503, text="backend")) as client:
        with pytest.raises(TransientSourceError) as excinfo:
            await YouTubePlaylistSource(client, _settings(), "PL1").fetch_page(None)
    assert excinfo.value.status_code == 503


@pytest.mark.asyncio
async def test_client_error_is_final() -> None:
    async with _client(lambda request: httpx.Response(403, text="quotaExceeded")) as client:
        with pytest.raises(SourceError, match="HTTP 403: quotaExceeded") as excinfo:
            await YouTubePlaylistSource(client, _settings(), "PL1").fetch_page(None)
    assert not isinstance(excinfo.value, TransientSourceError)


@pytest.mark.asyncio
async def test_invalid_json_is_source_error() -> None:
    async with _client(lambda request: httpx.Response(200, text="<html>")) as client:
        with pytest.raises(SourceError, match="Invalid response"):
            await YouTubeVideoDetails(client, _settings()).fetch_details(["a"])


@pytest.mark.asyncio
async def test_transport_error_is_source_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    async with _client(handler) as client:
        with pytest.raises(SourceError, match="Unable to contact"):
            await YouTubeVideoDetails(client, _settings()).fetch_details(["a"])


@pytest.mark.asyncio
async def test_fetch_details_maps_durations() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "items": [
                    {"id": "a", "contentDetails": {"duration": "PT1M"}},
                    {"id": "b", "contentDetails": {}},
                ]
            },
        )

    async with _client(handler) as client:
        durations = await YouTubeVideoDetails(client, _settings()).fetch_details(["a", "b", "c"])

    assert durations == {"a": "PT1M", "b": "PT0S"}
    assert seen[0].url.path.endswith("/videos")
    assert seen[0].url.params["id"] == "a,b,c"
    assert seen[0].url.params["part"] == "contentDetails"


@pytest.mark.asyncio
async def test_fetch_details_skips_empty_batches() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - must not be called
        raise AssertionError("unexpected request")

    async with _client(handler) as client:
        assert await YouTubeVideoDetails(client, _settings()).fetch_details([]) == {}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"items": ["junk"]},
        {"items": [{"contentDetails": "x"}]},
        {"items": [{"contentDetails": {"videoId": "a"}, "snippet": ["title"]}]},
        {"items": "abc"},
        {"items": {"videoId": "a"}},
    ],
)
async def test_fetch_page_rejects_malformed_items(payload: dict) -> None:
    async with _client(lambda request: httpx.Response(200, json=payload)) as client:
        with pytest.raises(SourceError, match="Invalid response"):
            await YouTubePlaylistSource(client, _settings(), "PL1").fetch_page(None)


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"items": [42]}, {"items": [{"id": "a", "contentDetails": "PT1M"}]}])
async def test_fetch_details_rejects_malformed_items(payload: dict) -> None:
    async with _client(lambda request: httpx.Response(200, json=payload)) as client:
        with pytest.raises(SourceError, match="Invalid response"):
            await YouTubeVideoDetails(client, _settings()).fetch_details(["a"])


@pytest.mark.asyncio
async def test_fetch_details_ignores_non_string_durations() -> None:
    payload = {"items": [{"id": "a", "contentDetails": {"duration": 123}}, {"id": 7, "contentDetails": {}}]}
    async with _client(lambda request: httpx.Response(200, json=payload)) as client:
        assert await YouTubeVideoDetails(client, _settings()).fetch_details(["a"]) == {"a": "PT0S"}
