"""Configuration parsing and validation for the review latency report generator."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import FrozenSet, Iterable, Optional, Sequence, Tuple

import pytz
from dotenv import load_dotenv

from .errors import AuthenticationError, ConfigurationError
from .models import DEFAULT_COLUMNS, REPORT_COLUMNS

EXCLUDE_AUTHOR = "author"
EXCLUDE_TRACKED = "tracked"
EXCLUSION_POLICIES = (EXCLUDE_AUTHOR, EXCLUDE_TRACKED)

FETCH_ERROR_FAIL = "fail"
FETCH_ERROR_SKIP = "skip"
FETCH_ERROR_POLICIES = (FETCH_ERROR_FAIL, FETCH_ERROR_SKIP)

WEEKDAY_NAMES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")


@dataclass(frozen=True)
class CalendarConfig:
    """Business-hours calendar settings: work week, daily window and time zone."""

    work_days: FrozenSet[int] = frozenset({0, 1, 2, 3, 4})
    day_start: time = time(10, 0)
    day_end: time = time(19, 0)
    timezone: str = "UTC"


@dataclass(frozen=True)
class Config:
    """Validated runtime settings used by the report generator."""

    repository: str
    users: Tuple[str, ...]
    from_date: date
    to_date: date
    token: str
    calendar: CalendarConfig = field(default_factory=CalendarConfig)
    exclusion_policy: str = EXCLUDE_AUTHOR
    fetch_error_policy: str = FETCH_ERROR_FAIL
    csv_path: str = "pr_data.csv"
    columns: Tuple[str, ...] = DEFAULT_COLUMNS
    chart_dir: str = "."
    workers: int = 1


def parse_time_of_day(value: str) -> time:
    """Parse ``HH:MM`` into a :class:`datetime.time`.

    Raises:
        ConfigurationError: If ``value`` is not a valid 24-hour clock time.
    """
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except ValueError as exc:
        raise ConfigurationError(
            f"Invalid time of day '{value}': expected HH:MM (24-hour clock)."
        ) from exc


def parse_work_days(value: str) -> FrozenSet[int]:
    """Parse a comma-separated list of weekday abbreviations (``mon,tue,...``)."""
    days = set()
    for token in value.split(","):
        name = token.strip().lower()[:3]
        if not name:
            continue
        if name not in WEEKDAY_NAMES:
            raise ConfigurationError(f"Unknown weekday '{token.strip()}' in work days.")
        days.add(WEEKDAY_NAMES.index(name))
    return frozenset(days)


def parse_users(value: Optional[str]) -> Tuple[str, ...]:
    """Split a comma-separated user list, dropping blanks and duplicates."""
    if not value:
        return ()
    users = []
    for user in value.split(","):
        user = user.strip()
        if user and user not in users:
            users.append(user)
    return tuple(users)


def build_calendar_config(
    work_days: Optional[FrozenSet[int]] = None,
    day_start: Optional[time] = None,
    day_end: Optional[time] = None,
    timezone: Optional[str] = None,
) -> CalendarConfig:
    """Build and validate a :class:`CalendarConfig`, falling back to defaults.

    Raises:
        ConfigurationError: If the work window is empty or inverted, no work
            day is configured, or the time zone is unknown.
    """
    defaults = CalendarConfig()
    calendar = CalendarConfig(
        work_days=defaults.work_days if work_days is None else frozenset(work_days),
        day_start=day_start or defaults.day_start,
        day_end=day_end or defaults.day_end,
        timezone=timezone or defaults.timezone,
    )

    if not calendar.work_days:
        raise ConfigurationError("At least one work day must be configured.")
    if any(day < 0 or day > 6 for day in calendar.work_days):
        raise ConfigurationError("Work days must be weekday numbers between 0 (Mon) and 6 (Sun).")
    if calendar.day_start >= calendar.day_end:
        raise ConfigurationError(
            "Invalid work window: start "
            f"{calendar.day_start:%H:%M} must be before end {calendar.day_end:%H:%M}."
        )
    try:
        pytz.timezone(calendar.timezone)
    except pytz.UnknownTimeZoneError as exc:
        raise ConfigurationError(f"Unknown time zone '{calendar.timezone}'.") from exc

    return calendar


def load_config(
    from_date: date,
    to_date: date,
    repository: Optional[str] = None,
    users: Optional[Sequence[str]] = None,
    work_days: Optional[Iterable[int]] = None,
    day_start: Optional[time] = None,
    day_end: Optional[time] = None,
    timezone: Optional[str] = None,
    exclusion_policy: str = EXCLUDE_AUTHOR,
    fetch_error_policy: str = FETCH_ERROR_FAIL,
    csv_path: str = "pr_data.csv",
    columns: Optional[Sequence[str]] = None,
    chart_dir: str = ".",
    workers: int = 1,
) -> Config:
    """Build and validate application configuration.

    Values passed explicitly win over the environment. The environment is
    read after loading a ``.env`` file from the working directory, so
    ``REPOSITORY``, ``USERS``, ``GITHUB_ACCESS_TOKEN``, ``BUSINESS_TIMEZONE``,
    ``WORKDAY_START`` and ``WORKDAY_END`` can live there.

    Raises:
        ConfigurationError: If required values are missing or invalid.
        AuthenticationError: If ``GITHUB_ACCESS_TOKEN`` is not configured.
    """
    load_dotenv()

    repository = (repository or os.getenv("REPOSITORY", "")).strip()
    if not repository or repository.count("/") != 1:
        raise ConfigurationError(
            "Missing or invalid repository: expected 'owner/name' via --repo or REPOSITORY."
        )

    tracked_users = tuple(users) if users else parse_users(os.getenv("USERS"))
    if not tracked_users:
        raise ConfigurationError("No users to track: pass --users or set USERS.")

    if from_date > to_date:
        raise ConfigurationError(
            f"Invalid date range: {from_date.isoformat()} is after {to_date.isoformat()}."
        )

    if exclusion_policy not in EXCLUSION_POLICIES:
        raise ConfigurationError(
            f"Unknown exclusion policy '{exclusion_policy}': expected one of {EXCLUSION_POLICIES}."
        )
    if fetch_error_policy not in FETCH_ERROR_POLICIES:
        raise ConfigurationError(
            f"Unknown fetch error policy '{fetch_error_policy}': "
            f"expected one of {FETCH_ERROR_POLICIES}."
        )
    if workers <= 0:
        raise ConfigurationError("Invalid value for 'workers': expected an integer greater than 0.")

    selected_columns = tuple(columns) if columns else DEFAULT_COLUMNS
    unknown = [column for column in selected_columns if column not in REPORT_COLUMNS]
    if unknown:
        raise ConfigurationError(f"Unknown CSV column(s): {', '.join(unknown)}.")

    if day_start is None and os.getenv("WORKDAY_START"):
        day_start = parse_time_of_day(os.environ["WORKDAY_START"])
    if day_end is None and os.getenv("WORKDAY_END"):
        day_end = parse_time_of_day(os.environ["WORKDAY_END"])

    calendar = build_calendar_config(
        work_days=None if work_days is None else frozenset(work_days),
        day_start=day_start,
        day_end=day_end,
        timezone=timezone or os.getenv("BUSINESS_TIMEZONE"),
    )

    token: str = os.getenv("GITHUB_ACCESS_TOKEN", "").strip()
    if not token:
        raise AuthenticationError(
            "Missing required GitHub access token. "
            "Set the 'GITHUB_ACCESS_TOKEN' environment variable before running the report."
        )

    return Config(
        repository=repository,
        users=tracked_users,
        from_date=from_date,
        to_date=to_date,
        token=token,
        calendar=calendar,
        exclusion_policy=exclusion_policy,
        fetch_error_policy=fetch_error_policy,
        csv_path=csv_path,
        columns=selected_columns,
        chart_dir=chart_dir,
        workers=workers,
    )
