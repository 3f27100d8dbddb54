"""Conversion between encoded durations and seconds.

``parse_duration`` is deliberately lenient: anything it cannot read counts as
zero seconds, so a single odd value never aborts a report.
"""

from __future__ import annotations

import re

_ISO_DURATION_RE = re.compile(
    r"^P(?:(?P<days>\d+)D)?"
    r"(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$",
    re.IGNORECASE,
)
_CLOCK_RE = re.compile(r"^(?:(?P<hours>\d+):)?(?P<minutes>\d{1,2}):(?P<seconds>\d{1,2})$")


def parse_duration(encoded: str | None) -> int:
    """Return the number of whole seconds in ``PT1H2M3S`` or ``HH:MM:SS`` input; 0 if unreadable."""

    if not encoded or not isinstance(encoded, str):
        return 0
    value = encoded.strip()

    match = _ISO_DURATION_RE.match(value)
    if match and value.upper() not in {"P", "PT"}:
        days = int(match.group("days") or 0)
        hours = int(match.group("hours") or 0)
        minutes = int(match.group("minutes") or 0)
        seconds = int(float(match.group("seconds") or 0))
        return days * 86400 + hours * 3600 + minutes * 60 + seconds

    match = _CLOCK_RE.match(value)
    if match:
        hours = int(match.group("hours") or 0)
        return hours * 3600 + int(match.group("minutes")) * 60 + int(match.group("seconds"))

    return 0


def format_seconds(seconds: float) -> str:
    """Render seconds as zero-padded ``HH:MM:SS``."""

    total = abs(round(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
