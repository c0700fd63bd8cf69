"""Command-line argument parsing for the GitHub review latency report."""

from __future__ import annotations

import argparse
from datetime import date, datetime
from typing import List, Optional, Sequence

from .config import (
    EXCLUSION_POLICIES,
    FETCH_ERROR_POLICIES,
    parse_time_of_day,
    parse_users,
    parse_work_days,
)
from .errors import ConfigurationError


def _positive_int(value: str) -> int:
    """Parse and validate a positive integer CLI value.

    Raises:
        argparse.ArgumentTypeError: If value is not a positive integer.
    """
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be an integer") from exc

    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be greater than 0")

    return parsed


def _iso_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be a date in YYYY-MM-DD format") from exc


def _time_of_day(value: str):
    try:
        return parse_time_of_day(value)
    except ConfigurationError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _work_days(value: str):
    try:
        return parse_work_days(value)
    except ConfigurationError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _column_list(value: str) -> List[str]:
    return [column.strip() for column in value.split(",") if column.strip()]


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for report generation.

    Returns:
        Parsed CLI arguments. Repository and users fall back to the
        environment when omitted.
    """
    parser = argparse.ArgumentParser(
        prog="github-review-latency",
        description=(
            "Measure business-hour review latency (review request to first "
            "response and to approval) for merged GitHub pull requests."
        ),
    )

    parser.add_argument(
        "--repo",
        default=None,
        help="Repository as owner/name (default: REPOSITORY environment variable).",
    )
    parser.add_argument(
        "--users",
        type=parse_users,
        default=None,
        help="Comma-separated PR authors to track (default: USERS environment variable).",
    )
    parser.add_argument(
        "--from",
        dest="from_date",
        type=_iso_date,
        default=None,
        help="First creation date to include, YYYY-MM-DD (default: --days before --to).",
    )
    parser.add_argument(
        "--to",
        dest="to_date",
        type=_iso_date,
        default=None,
        help="Last creation date to include, YYYY-MM-DD (default: today).",
    )
    parser.add_argument(
        "--days",
        type=_positive_int,
        default=30,
        help="Days of history to analyze when --from is omitted (default: 30).",
    )
    parser.add_argument(
        "--output",
        default="pr_data.csv",
        help="CSV output path (default: pr_data.csv).",
    )
    parser.add_argument(
        "--columns",
        type=_column_list,
        default=None,
        help="Comma-separated CSV columns to export (default: all standard columns).",
    )
    parser.add_argument(
        "--chart-dir",
        default=".",
        help="Directory for weekly trend charts (default: current directory).",
    )
    parser.add_argument(
        "--work-start",
        type=_time_of_day,
        default=None,
        help="Start of the working day, HH:MM (default: WORKDAY_START or 10:00).",
    )
    parser.add_argument(
        "--work-end",
        type=_time_of_day,
        default=None,
        help="End of the working day, HH:MM (default: WORKDAY_END or 19:00).",
    )
    parser.add_argument(
        "--work-days",
        type=_work_days,
        default=None,
        help="Comma-separated work week, e.g. mon,tue,wed,thu,fri (default).",
    )
    parser.add_argument(
        "--timezone",
        default=None,
        help="IANA time zone for business hours and week keys (default: BUSINESS_TIMEZONE or UTC).",
    )
    parser.add_argument(
        "--exclude",
        choices=EXCLUSION_POLICIES,
        default="author",
        help="Whose comments/approvals are ignored: the PR author, or all tracked users.",
    )
    parser.add_argument(
        "--on-fetch-error",
        choices=FETCH_ERROR_POLICIES,
        default="fail",
        help="Abort the run or skip a PR's records when fetching them fails.",
    )
    parser.add_argument(
        "--workers",
        type=_positive_int,
        default=1,
        help="Number of pull requests processed concurrently (default: 1).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    return parser.parse_args(argv)
