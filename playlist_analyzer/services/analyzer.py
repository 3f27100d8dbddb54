"""End-to-end run: collect, narrow, enrich, bound, order, report."""

from __future__ import annotations

import logging

import httpx

from playlist_analyzer.core.config import Settings
from playlist_analyzer.schema.playlist import EnrichedItem, FilterCriteria, Report
from playlist_analyzer.services.batch_enricher import BatchEnricher, DetailSource
from playlist_analyzer.services.paginator import PagedSource, Paginator
from playlist_analyzer.services.pipeline import apply_duration_bounds, apply_predicates, apply_range, sort_items
from playlist_analyzer.services.report_builder import build_report
from playlist_analyzer.services.retrying_fetcher import RetryingFetcher, RetryPolicy
from playlist_analyzer.services.youtube_source import (
    YouTubePlaylistSource,
    YouTubeVideoDetails,
    extract_playlist_id,
)

logger = logging.getLogger(__name__)

USER_AGENT = "playlist-analyzer/0.1"


async def analyze_playlist(
    source: PagedSource,
    details: DetailSource,
    criteria: FilterCriteria,
    *,
    speed_factor: float = 1.0,
    batch_size: int = 50,
    fetcher: RetryingFetcher | None = None,
) -> Report:
    """Run every stage in order; returns a Report or raises the first failure."""

    fetcher = fetcher or RetryingFetcher()
    paginator = Paginator(fetcher)
    enricher = BatchEnricher(fetcher, batch_size=batch_size)

    collected = await paginator.collect_all(source)
    narrowed = apply_predicates(apply_range(collected, criteria), criteria)
    logger.info("Kept %s of %s items before duration lookup", len(narrowed), len(collected))

    durations = await enricher.enrich([item.video_id for item in narrowed], details.fetch_details)
    enriched = [EnrichedItem.from_item(item, durations.get(item.video_id, 0)) for item in narrowed]

    final = sort_items(apply_duration_bounds(enriched, criteria), criteria)
    report = build_report(
        final,
        speed_factor,
        total_count=len(collected),
        page_requests=paginator.page_requests,
        detail_requests=enricher.detail_requests,
    )
    logger.info(
        "Report ready",
        extra={
            "total": report.total_count,
            "filtered": report.filtered_count,
            "seconds": report.total_duration_seconds,
            "retries": fetcher.retries,
        },
    )
    return report


async def analyze_youtube_playlist(
    playlist: str,
    criteria: FilterCriteria,
    settings: Settings,
    *,
    speed_factor: float = 1.0,
    client: httpx.AsyncClient | None = None,
    fetcher: RetryingFetcher | None = None,
) -> Report:
    """Analyze a YouTube playlist given its URL or id."""

    playlist_id = extract_playlist_id(playlist)
    fetcher = fetcher or RetryingFetcher(RetryPolicy.from_settings(settings))
    logger.info("Fetching playlist %s", playlist_id)

    if client is not None:
        return await _run_youtube(client, playlist_id, criteria, settings, speed_factor, fetcher)

    async with httpx.AsyncClient(headers={"User-Agent": USER_AGENT}) as owned_client:
        return await _run_youtube(owned_client, playlist_id, criteria, settings, speed_factor, fetcher)


async def _run_youtube(
    client: httpx.AsyncClient,
    playlist_id: str,
    criteria: FilterCriteria,
    settings: Settings,
    speed_factor: float,
    fetcher: RetryingFetcher,
) -> Report:
    return await analyze_playlist(
        YouTubePlaylistSource(client, settings, playlist_id),
        YouTubeVideoDetails(client, settings),
        criteria,
        speed_factor=speed_factor,
        batch_size=settings.batch_size,
        fetcher=fetcher,
    )
