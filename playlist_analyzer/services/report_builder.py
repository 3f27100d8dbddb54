"""Totals, top-N ranking and the text/CSV/JSON renderings of a report."""

from __future__ import annotations

import csv
import io
import logging
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape
from pydantic import TypeAdapter

from playlist_analyzer.core.exceptions import ConfigurationError
from playlist_analyzer.schema.export import EXPORT_FIELDS, ExportRow
from playlist_analyzer.schema.playlist import EnrichedItem, Report
from playlist_analyzer.services.duration_codec import format_seconds

logger = logging.getLogger(__name__)

TOP_N = 5
MIN_SPEED = 0.1
EXPORT_FORMATS = ("csv", "json")

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=select_autoescape(disabled_extensions=("txt", "jinja")),
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)
_env.filters["hms"] = format_seconds
_env.filters["hours"] = lambda seconds: f"{seconds / 3600:.2f}"
_env.filters["speed"] = lambda factor: f"{factor:g}"

_rows_adapter = TypeAdapter(list[ExportRow])


def build_report(
    items: Sequence[EnrichedItem],
    speed_factor: float = 1.0,
    *,
    total_count: int | None = None,
    top_n: int = TOP_N,
    page_requests: int = 0,
    detail_requests: int = 0,
) -> Report:
    """Aggregate the final item list; the input ordering is left untouched."""

    final = list(items)
    total_seconds = sum(item.duration_seconds for item in final)
    adjusted = total_seconds / max(MIN_SPEED, speed_factor)
    top = sorted(final, key=lambda item: item.duration_seconds, reverse=True)[:top_n]

    return Report(
        total_count=len(final) if total_count is None else total_count,
        filtered_count=len(final),
        total_duration_seconds=total_seconds,
        speed_factor=speed_factor,
        speed_adjusted_seconds=adjusted,
        top=top,
        items=final,
        zero_duration_count=sum(1 for item in final if item.duration_seconds == 0),
        page_requests=page_requests,
        detail_requests=detail_requests,
    )


def export_rows(report: Report) -> list[ExportRow]:
    return [
        ExportRow(
            id=item.video_id,
            title=item.title,
            channel=item.channel or "",
            published_at=item.published_at.isoformat().replace("+00:00", "Z") if item.published_at else "",
            seconds=item.duration_seconds,
            formatted_duration=format_seconds(item.duration_seconds),
        )
        for item in report.items
    ]


def render_csv(report: Report) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_FIELDS)
    for row in export_rows(report):
        writer.writerow(
            [row.id, row.title, row.channel, row.published_at, row.seconds, row.formatted_duration]
        )
    return buffer.getvalue()


def render_json(report: Report) -> str:
    return _rows_adapter.dump_json(export_rows(report), indent=2, by_alias=True).decode("utf-8")


def render_summary(report: Report) -> str:
    """Render the console summary from ``summary.txt.jinja``."""

    template = _env.get_template("summary.txt.jinja")
    return template.render(report=report)


def _export_mode() -> int:
    # mkstemp creates 0600 files; exports follow the umask like a plain open()
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_export(report: Report, fmt: str, directory: str | os.PathLike[str]) -> Path:
    """Write ``playlist.<fmt>`` into ``directory`` atomically and return its path."""

    fmt = fmt.lower()
    if fmt == "csv":
        payload = render_csv(report)
    elif fmt == "json":
        payload = render_json(report)
    else:
        raise ConfigurationError(f"Unknown export format {fmt!r}; use csv or json")

    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / f"playlist.{fmt}"

    fd, tmp_name = tempfile.mkstemp(prefix=".playlist-", suffix=f".{fmt}.tmp", dir=target_dir)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(payload)
        os.chmod(tmp_name, _export_mode())
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.info("Exported %s rows to %s", report.filtered_count, target)
    return target
