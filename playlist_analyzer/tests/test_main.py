"""Tests for the command line entry point."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from playlist_analyzer import main as cli
from playlist_analyzer.core.config import Settings
from playlist_analyzer.core.exceptions import FetchExhaustedError, TransientSourceError
from playlist_analyzer.schema.playlist import EnrichedItem
from playlist_analyzer.services.report_builder import build_report


def _report(count: int = 2, speed: float = 1.0):
    items = [
        EnrichedItem(
            video_id=f"v{i}",
            title=f"Video {i}",
            channel="Chan",
            published_at=datetime(2024, 1, i, tzinfo=timezone.utc),
            position=i,
            duration_seconds=60 * i,
        )
        for i in range(1, count + 1)
    ]
    return build_report(items, speed, total_count=count)


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Settings:
    configured = Settings(youtube_api_key="dummy-key", export_dir=str(tmp_path / "exports"))
    monkeypatch.setattr(cli, "get_settings", lambda: configured)
    monkeypatch.setattr(cli, "setup_logging", lambda level: None)
    return configured


def test_parse_args_maps_flags() -> None:
    args = cli.parse_args(
        ["PL1", "--speed", "1.5", "--range", "5-42", "--min", "3", "--sort", "duration", "--desc", "--export", "csv"]
    )
    assert args.playlist == "PL1"
    assert args.speed == 1.5
    assert args.range_spec == "5-42"
    assert args.min_minutes == "3"
    assert args.sort_key == "duration"
    assert args.desc is True
    assert args.export == "csv"


def test_main_prints_summary_and_exports(monkeypatch, settings, tmp_path, capsys) -> None:
    captured = {}

    async def fake_analyze(playlist, criteria, cfg, *, speed_factor):
        captured.update(playlist=playlist, criteria=criteria, settings=cfg, speed=speed_factor)
        return _report(speed=speed_factor)

    monkeypatch.setattr(cli, "analyze_youtube_playlist", fake_analyze)

    code = cli.main(["PL1", "--speed", "2", "--sort", "title", "--export", "json"])

    out = capsys.readouterr().out
    assert code == cli.EXIT_OK
    assert "Total items in playlist: 2" in out
    assert "At 2x" in out
    assert "Saved JSON" in out
    assert (tmp_path / "exports" / "playlist.json").exists()
    assert captured["playlist"] == "PL1"
    assert captured["criteria"].sort_key == "title"
    assert captured["settings"] is settings
    assert captured["speed"] == 2.0


def test_main_reports_empty_playlist(monkeypatch, settings, capsys) -> None:
    async def fake_analyze(playlist, criteria, cfg, *, speed_factor):
        return _report(count=0)

    monkeypatch.setattr(cli, "analyze_youtube_playlist", fake_analyze)

    assert cli.main(["PL1"]) == cli.EXIT_OK
    assert "No items found" in capsys.readouterr().out


def test_main_rejects_bad_range_before_fetching(monkeypatch, settings, capsys) -> None:
    async def fake_analyze(*args, **kwargs):  # pragma: no cover - must not be called
        raise AssertionError("fetch attempted")

    monkeypatch.setattr(cli, "analyze_youtube_playlist", fake_analyze)

    assert cli.main(["PL1", "--range", "five"]) == cli.EXIT_USAGE
    assert "Invalid range" in capsys.readouterr().err


def test_main_requires_api_key(monkeypatch, capsys) -> None:
    monkeypatch.setattr(cli, "get_settings", lambda: Settings(youtube_api_key=None))
    monkeypatch.setattr(cli, "setup_logging", lambda level: None)

    assert cli.main(["PL1"]) == cli.EXIT_USAGE
    assert "APP_YOUTUBE_API_KEY" in capsys.readouterr().err


def test_main_surfaces_source_failure(monkeypatch, settings, tmp_path, capsys) -> None:
    async def fake_analyze(*args, **kwargs):
        raise FetchExhaustedError(3, TransientSourceError("HTTP 503"))

    monkeypatch.setattr(cli, "analyze_youtube_playlist", fake_analyze)

    assert cli.main(["PL1", "--export", "csv"]) == cli.EXIT_SOURCE_ERROR
    assert "Failed: Gave up after 3 attempts" in capsys.readouterr().err
    assert not (tmp_path / "exports").exists()


def test_main_rejects_invalid_environment_settings(monkeypatch, capsys) -> None:
    monkeypatch.setenv("APP_BATCH_SIZE", "abc")
    monkeypatch.setattr(cli, "setup_logging", lambda level: None)
    cli.get_settings.cache_clear()
    try:
        assert cli.main(["PL1"]) == cli.EXIT_USAGE
    finally:
        cli.get_settings.cache_clear()

    err = capsys.readouterr().err
    assert "Error: invalid settings" in err
    assert "batch_size" in err
