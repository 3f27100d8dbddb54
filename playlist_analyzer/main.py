"""Command line entry point for the playlist analyzer.

Usage:
    playlist-analyzer "<playlist URL or ID>" [--speed 1.25] [--range 5-42]
        [--filter "DSA|System Design"] [--since 2024-01-01] [--until 2025-12-31]
        [--min 3] [--max 60] [--sort duration|title|date] [--desc]
        [--export csv|json] [--out DIR]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

from pydantic import ValidationError

from playlist_analyzer.core.config import Settings, get_settings
from playlist_analyzer.core.exceptions import ConfigurationError, SourceError
from playlist_analyzer.core.logging import setup_logging
from playlist_analyzer.schema.playlist import SORT_KEYS
from playlist_analyzer.services.analyzer import analyze_youtube_playlist
from playlist_analyzer.services.pipeline import build_criteria
from playlist_analyzer.services.report_builder import EXPORT_FORMATS, render_summary, write_export

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_SOURCE_ERROR = 1
EXIT_USAGE = 2


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="playlist-analyzer",
        description="Total up, filter, sort and export the videos of a YouTube playlist",
    )
    parser.add_argument("playlist", help="Playlist URL or ID")
    parser.add_argument("--speed", type=float, default=1.0, help="Playback speed multiplier (default: 1)")
    parser.add_argument("--range", dest="range_spec", help="1-based inclusive positions, e.g. 5-42")
    parser.add_argument("--filter", dest="pattern", help="Case-insensitive regex matched against titles")
    parser.add_argument("--since", help="Only videos published on/after this date")
    parser.add_argument("--until", help="Only videos published on/before this date")
    parser.add_argument("--min", dest="min_minutes", help="Minimum duration in minutes")
    parser.add_argument("--max", dest="max_minutes", help="Maximum duration in minutes (0 = no limit)")
    parser.add_argument("--sort", dest="sort_key", help=f"Sort by {'|'.join(SORT_KEYS)}")
    parser.add_argument("--desc", action="store_true", help="Reverse the sort order")
    parser.add_argument("--export", choices=EXPORT_FORMATS, help="Write the final list as CSV or JSON")
    parser.add_argument("--out", help="Export directory (default: APP_EXPORT_DIR or ./out)")
    parser.add_argument("--log-level", help="Logging level (default: APP_LOG_LEVEL or INFO)")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace, settings: Settings) -> int:
    criteria = build_criteria(
        range_spec=args.range_spec,
        pattern=args.pattern,
        since=args.since,
        until=args.until,
        min_minutes=args.min_minutes,
        max_minutes=args.max_minutes,
        sort_key=args.sort_key,
        descending=args.desc,
    )

    report = await analyze_youtube_playlist(args.playlist, criteria, settings, speed_factor=args.speed)
    if report.total_count == 0:
        print("No items found or playlist is private/unavailable.")
        return EXIT_OK

    print(render_summary(report), end="")

    if args.export:
        path = write_export(report, args.export, args.out or settings.export_dir)
        print(f"\nSaved {args.export.upper()} -> {path}")
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        settings = get_settings()
    except ValidationError as exc:
        print(f"Error: invalid settings: {exc}", file=sys.stderr)
        return EXIT_USAGE
    setup_logging(args.log_level or settings.log_level)

    try:
        return asyncio.run(run(args, settings))
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except SourceError as exc:
        logger.debug("Run aborted", exc_info=True)
        print(f"Failed: {exc}", file=sys.stderr)
        return EXIT_SOURCE_ERROR


if __name__ == "__main__":
    sys.exit(main())
