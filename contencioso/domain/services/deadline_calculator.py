"""Statutory deadline computation.

Deadlines are expressed either in calendar days or in business days. A
business-day deadline is found by stepping one day at a time from the start
instant and counting only days the calendar reports as business days; the
landing instant keeps the start's time of day.

Calendars are pluggable so holiday tables can be introduced without
touching workflow code:

- WeekendCalendar: Saturday and Sunday are the only non-business days
- HolidayCalendar: weekends plus a fixed set of dates
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import date, datetime, timedelta

# datetime.weekday() values
SATURDAY: int = 5
SUNDAY: int = 6


class BusinessCalendar(ABC):
    """Decides which days count as business days."""

    @abstractmethod
    def is_business_day(self, day: date) -> bool:
        """Return True if ``day`` counts toward a business-day deadline."""
        ...


class WeekendCalendar(BusinessCalendar):
    """Monday to Friday are business days."""

    def is_business_day(self, day: date) -> bool:
        return day.weekday() not in (SATURDAY, SUNDAY)

    def __repr__(self) -> str:
        return "WeekendCalendar()"


class HolidayCalendar(WeekendCalendar):
    """Weekends plus a fixed set of holidays are non-business days."""

    def __init__(self, holidays: Iterable[date]) -> None:
        """Initialize with the holiday dates.

        Args:
            holidays: Dates that never count as business days.
        """
        self._holidays = frozenset(holidays)

    @property
    def holidays(self) -> frozenset[date]:
        return self._holidays

    def is_business_day(self, day: date) -> bool:
        return super().is_business_day(day) and day not in self._holidays

    def __repr__(self) -> str:
        return f"HolidayCalendar({len(self._holidays)} holidays)"


class DeadlineCalculator:
    """Computes deadlines from a start instant.

    Pure: results depend only on ``(start, n, calendar)``.

    Example:
        >>> calc = DeadlineCalculator()
        >>> calc.business_days(datetime(2024, 1, 5), 1)
        datetime.datetime(2024, 1, 8, 0, 0)
    """

    def __init__(self, calendar: BusinessCalendar | None = None) -> None:
        """Initialize the calculator.

        Args:
            calendar: Business calendar to use (WeekendCalendar if omitted).
        """
        self._calendar = calendar if calendar is not None else WeekendCalendar()

    @property
    def calendar(self) -> BusinessCalendar:
        return self._calendar

    def calendar_days(self, start: datetime, n: int) -> datetime:
        """Return ``start`` plus ``n`` calendar days.

        Raises:
            ValueError: If ``n`` is negative.
        """
        _require_non_negative(n)
        return start + timedelta(days=n)

    def business_days(self, start: datetime, n: int) -> datetime:
        """Return the instant ``n`` business days after ``start``.

        The start day itself is never counted. With ``n == 0`` the start is
        returned unchanged, even on a weekend.

        Raises:
            ValueError: If ``n`` is negative.
        """
        _require_non_negative(n)
        current = start
        counted = 0
        while counted < n:
            current += timedelta(days=1)
            if self._calendar.is_business_day(current.date()):
                counted += 1
        return current

    def is_expired(self, deadline: datetime, now: datetime) -> bool:
        """A deadline is expired strictly after its instant."""
        return now > deadline

    def is_within(self, deadline: datetime | None, now: datetime) -> bool:
        """True when no deadline applies or ``now`` has not passed it."""
        return deadline is None or not self.is_expired(deadline, now)


def _require_non_negative(n: int) -> None:
    if n < 0:
        raise ValueError(f"day count must be >= 0, got {n}")
