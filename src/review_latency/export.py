"""CSV export of per-PR review latency reports with a configurable column set."""

from __future__ import annotations

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Sequence

from .models import DEFAULT_COLUMNS, PullRequestReport

if TYPE_CHECKING:
    from .business_calendar import BusinessCalendar

logger = logging.getLogger(__name__)

_COLUMN_GETTERS: Dict[str, Callable[[PullRequestReport], Any]] = {
    "number": lambda report: report.timeline.number,
    "title": lambda report: report.timeline.title,
    "author": lambda report: report.timeline.author,
    "created_at": lambda report: report.timeline.created_at,
    "review_requested_at": lambda report: report.timeline.review_requested_at,
    "opened_at": lambda report: report.timeline.opened_at,
    "first_comment_at": lambda report: report.timeline.first_comment_at,
    "first_comment_or_approval": lambda report: report.timeline.first_response_at,
    "approved_at": lambda report: report.timeline.approved_at,
    "merged_at": lambda report: report.timeline.merged_at,
    "review_to_first_response_hours": (
        lambda report: report.metrics.review_to_first_response_hours
    ),
    "review_to_approval_hours": lambda report: report.metrics.review_to_approval_hours,
}


def _format_cell(value: Any, calendar: Optional["BusinessCalendar"]) -> Any:
    if value is None:
        return ""
    if isinstance(value, datetime):
        if calendar is not None:
            value = calendar.localize(value)
        return value.isoformat()
    return value


def build_rows(
    reports: Sequence[PullRequestReport],
    columns: Sequence[str] = DEFAULT_COLUMNS,
    calendar: Optional["BusinessCalendar"] = None,
):
    """Project reports onto ``columns``, formatting timestamps and blanks."""
    unknown = [column for column in columns if column not in _COLUMN_GETTERS]
    if unknown:
        raise ValueError(f"Unknown CSV column(s): {', '.join(unknown)}")

    return [
        {column: _format_cell(_COLUMN_GETTERS[column](report), calendar) for column in columns}
        for report in reports
    ]


def write_csv(
    reports: Sequence[PullRequestReport],
    path: str,
    columns: Sequence[str] = DEFAULT_COLUMNS,
    calendar: Optional["BusinessCalendar"] = None,
) -> Path:
    """Write one row per report to ``path``.

    The header is always written, so an empty run yields a header-only file.
    Timestamps are rendered as ISO-8601 in the calendar time zone when a
    calendar is given.
    """
    output = Path(path)
    if output.parent and not output.parent.exists():
        output.parent.mkdir(parents=True, exist_ok=True)

    rows = build_rows(reports, columns, calendar)
    with output.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=list(columns))
        writer.writeheader()
        writer.writerows(rows)

    logger.info("Wrote CSV report", extra={"path": str(output), "rows": len(rows)})
    return output
