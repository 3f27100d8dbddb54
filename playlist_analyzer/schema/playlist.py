"""Records flowing through the collection, enrichment and reporting stages."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

SORT_KEYS = ("duration", "title", "date")


@dataclass(slots=True, frozen=True)
class PlaylistItem:
    """A resolvable playlist entry; position is 1-based among kept entries."""

    video_id: str
    title: str
    channel: str | None
    published_at: datetime | None
    position: int


@dataclass(slots=True, frozen=True)
class EnrichedItem:
    """Playlist entry with its looked-up duration (0 when unknown)."""

    video_id: str
    title: str
    channel: str | None
    published_at: datetime | None
    position: int
    duration_seconds: int = 0

    @classmethod
    def from_item(cls, item: PlaylistItem, duration_seconds: int) -> EnrichedItem:
        return cls(
            video_id=item.video_id,
            title=item.title,
            channel=item.channel,
            published_at=item.published_at,
            position=item.position,
            duration_seconds=max(int(duration_seconds), 0),
        )


@dataclass(slots=True)
class Page:
    """One page of raw entries from a paged source."""

    items: list[Mapping[str, Any]] = field(default_factory=list)
    next_token: str | None = None


@dataclass(slots=True, frozen=True)
class FilterCriteria:
    """Immutable run options read by the filter/range/sort stages."""

    range_start: int = 1
    range_end: int | None = None
    pattern: re.Pattern[str] | None = None
    since: datetime | None = None
    until: datetime | None = None
    min_minutes: float | None = None
    max_minutes: float | None = None
    sort_key: str | None = None
    descending: bool = False


@dataclass(slots=True, frozen=True)
class Report:
    """Outcome of a successful run."""

    total_count: int
    filtered_count: int
    total_duration_seconds: int
    speed_factor: float
    speed_adjusted_seconds: float
    top: list[EnrichedItem]
    items: list[EnrichedItem]
    zero_duration_count: int = 0
    page_requests: int = 0
    detail_requests: int = 0

    @property
    def speed_changed(self) -> bool:
        return self.speed_factor != 1
