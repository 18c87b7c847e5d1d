"""Reference business calendar: weekends plus a configurable holiday table."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from datetime import date

from electoral_engine.application.ports.business_calendar import (
    BusinessCalendarProtocol,
)

# date.weekday(): Monday is 0, Saturday 5, Sunday 6
WEEKEND_DAYS: frozenset[int] = frozenset({5, 6})


class WeekendHolidayCalendar(BusinessCalendarProtocol):
    """Business days are Monday to Friday, minus holidays.

    Example:
        >>> calendar = WeekendHolidayCalendar(holidays=[date(2026, 12, 25)])
        >>> await calendar.is_business_day(date(2026, 12, 25))
        False
    """

    def __init__(self, holidays: Iterable[date] = ()) -> None:
        self._holidays: set[date] = set(holidays)
        self._failure: Exception | None = None
        self.calls = 0

    async def is_business_day(self, day: date) -> bool:
        self.calls += 1
        await asyncio.sleep(0)
        if self._failure is not None:
            raise self._failure
        return day.weekday() not in WEEKEND_DAYS and day not in self._holidays

    # Test helpers

    def add_holiday(self, day: date) -> None:
        self._holidays.add(day)

    def fail_with(self, error: Exception | None) -> None:
        """Make every call raise `error` (None restores normal behaviour)."""
        self._failure = error
