"""Business-hours arithmetic over a configurable work week and daily window."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional

import pytz

from .config import CalendarConfig


class BusinessCalendar:
    """Measure elapsed time that falls inside configured working hours.

    Every timestamp is converted to the calendar's single time zone before
    comparison, so callers may pass aware datetimes in any zone. Naive
    datetimes are rejected because their zone is ambiguous.
    """

    def __init__(self, config: Optional[CalendarConfig] = None) -> None:
        self._config = config or CalendarConfig()
        self._tz = pytz.timezone(self._config.timezone)

    @property
    def config(self) -> CalendarConfig:
        return self._config

    def localize(self, value: datetime) -> datetime:
        """Convert an aware datetime to the calendar time zone.

        Raises:
            ValueError: If ``value`` carries no time zone.
        """
        if value.tzinfo is None or value.utcoffset() is None:
            raise ValueError(
                f"Naive datetime {value.isoformat()} passed to business calendar; "
                "timestamps must be timezone-aware."
            )
        return value.astimezone(self._tz)

    def _window(self, day: date):
        start = self._tz.localize(datetime.combine(day, self._config.day_start))
        end = self._tz.localize(datetime.combine(day, self._config.day_end))
        return start, end

    def business_duration(
        self, start: Optional[datetime], end: Optional[datetime]
    ) -> Optional[float]:
        """Return business hours between ``start`` and ``end``.

        Sums, for each calendar day touched by ``[start, end]``, the overlap
        between that day's work window and the interval. Days outside the
        work week contribute nothing. Returns ``None`` when either bound is
        missing.

        Raises:
            ValueError: If ``start`` is after ``end`` or either is naive.
        """
        if start is None or end is None:
            return None

        start = self.localize(start)
        end = self.localize(end)
        if start > end:
            raise ValueError(
                f"Inverted business duration range: {start.isoformat()} > {end.isoformat()}"
            )

        total_seconds = 0.0
        day = start.date()
        while day <= end.date():
            if day.weekday() in self._config.work_days:
                window_start, window_end = self._window(day)
                overlap_start = max(start, window_start)
                overlap_end = min(end, window_end)
                if overlap_start < overlap_end:
                    total_seconds += (overlap_end - overlap_start).total_seconds()
            day += timedelta(days=1)

        return total_seconds / 3600.0
