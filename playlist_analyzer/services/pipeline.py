"""Range selection, predicate filtering, duration bounds and ordering.

Stages run in a fixed order: range and predicates before enrichment, then
duration bounds and sorting once durations are known. Positions used by the
range stage are the collected playlist positions, so filtering never shifts
which items a range selects.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import TypeVar

from playlist_analyzer.core.exceptions import ConfigurationError
from playlist_analyzer.schema.playlist import SORT_KEYS, EnrichedItem, FilterCriteria, PlaylistItem
from playlist_analyzer.services.paginator import parse_timestamp

logger = logging.getLogger(__name__)

_RANGE_RE = re.compile(r"^\s*(\d+)\s*(?:-\s*(\d*)\s*)?$")
_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)

ItemT = TypeVar("ItemT", PlaylistItem, EnrichedItem)


def parse_range(spec: str | None) -> tuple[int, int | None]:
    """Parse ``N-M``, ``N-`` or ``N`` into a 1-based inclusive (start, end) pair."""

    if spec is None or not spec.strip():
        return 1, None

    match = _RANGE_RE.match(spec)
    if not match:
        raise ConfigurationError(f"Invalid range {spec!r}; use a form like 5-42")

    start = max(1, int(match.group(1)))
    end_raw = match.group(2)
    if end_raw is None:
        # A bare number selects that single position
        return start, start
    if end_raw == "":
        return start, None
    return start, max(start, int(end_raw))


def _parse_bound_date(name: str, value: str | None) -> datetime | None:
    if value is None or not value.strip():
        return None
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ConfigurationError(f"Invalid {name} date {value!r}; use YYYY-MM-DD or ISO-8601")
    return parsed


def _parse_minutes(name: str, value: str | float | None) -> float | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        minutes = float(value)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid {name} minutes {value!r}") from exc
    if minutes < 0:
        raise ConfigurationError(f"{name} minutes must not be negative")
    return minutes or None


def build_criteria(
    *,
    range_spec: str | None = None,
    pattern: str | None = None,
    since: str | None = None,
    until: str | None = None,
    min_minutes: str | float | None = None,
    max_minutes: str | float | None = None,
    sort_key: str | None = None,
    descending: bool = False,
) -> FilterCriteria:
    """Validate raw run options; raises ConfigurationError on anything unusable."""

    range_start, range_end = parse_range(range_spec)

    compiled = None
    if pattern:
        try:
            compiled = re.compile(pattern, re.IGNORECASE)
        except re.error as exc:
            raise ConfigurationError(f"Invalid filter pattern {pattern!r}: {exc}") from exc

    key = (sort_key or "").strip().lower() or None
    if key is not None and key not in SORT_KEYS:
        logger.warning("Unknown sort key %r; keeping playlist order", sort_key)
        key = None

    return FilterCriteria(
        range_start=range_start,
        range_end=range_end,
        pattern=compiled,
        since=_parse_bound_date("since", since),
        until=_parse_bound_date("until", until),
        min_minutes=_parse_minutes("min", min_minutes),
        max_minutes=_parse_minutes("max", max_minutes),
        sort_key=key,
        descending=descending,
    )


def apply_range(items: Sequence[ItemT], criteria: FilterCriteria) -> list[ItemT]:
    total = len(items)
    end = total if criteria.range_end is None else min(criteria.range_end, total)
    return [item for index, item in enumerate(items, start=1) if criteria.range_start <= index <= end]


def _matches(item: PlaylistItem | EnrichedItem, criteria: FilterCriteria) -> bool:
    if criteria.pattern is not None and not criteria.pattern.search(item.title):
        return False
    if criteria.since is not None:
        if item.published_at is None or item.published_at < criteria.since:
            return False
    if criteria.until is not None:
        if item.published_at is None or item.published_at > criteria.until:
            return False
    return True


def apply_predicates(items: Sequence[ItemT], criteria: FilterCriteria) -> list[ItemT]:
    return [item for item in items if _matches(item, criteria)]


def apply_duration_bounds(items: Sequence[EnrichedItem], criteria: FilterCriteria) -> list[EnrichedItem]:
    kept: list[EnrichedItem] = []
    for item in items:
        minutes = item.duration_seconds / 60
        if criteria.min_minutes is not None and minutes < criteria.min_minutes:
            continue
        if criteria.max_minutes is not None and minutes > criteria.max_minutes:
            continue
        kept.append(item)
    return kept


def sort_items(items: Sequence[EnrichedItem], criteria: FilterCriteria) -> list[EnrichedItem]:
    ordered = list(items)
    if criteria.sort_key is None:
        return ordered

    if criteria.sort_key == "duration":
        ordered.sort(key=lambda item: item.duration_seconds)
    elif criteria.sort_key == "title":
        ordered.sort(key=lambda item: item.title.casefold())
    elif criteria.sort_key == "date":
        ordered.sort(key=lambda item: item.published_at or _EARLIEST)

    if criteria.descending:
        ordered.reverse()
    return ordered
