"""Working-day calendar arithmetic."""

from __future__ import annotations

import math
from datetime import date, timedelta

from .config import CalendarConfig

ONE_DAY = timedelta(days=1)

# Tolerance when rounding fractional working-day quantities
_EPSILON = 1e-9


class WorkingCalendar:
    """Date arithmetic over working days.

    Operates on plain ``datetime.date`` values (timezone-naive). A day is a
    working day when its weekday is not configured as non-working and it is
    not in the holiday list. Periods are whole working days; ranges are
    inclusive at both ends.
    """

    def __init__(self, config: CalendarConfig | None = None) -> None:
        self.config = config or CalendarConfig()
        self._non_working_weekdays = frozenset(self.config.non_working_weekdays)
        self._holidays = frozenset(self.config.holidays)

    @property
    def working_days_per_week(self) -> int:
        return self.config.working_days_per_week

    def is_working_day(self, day: date) -> bool:
        return day.weekday() not in self._non_working_weekdays and day not in self._holidays

    def next_working_day(self, day: date) -> date:
        """Get the first working day on or after ``day``."""
        # Terminates: the config guarantees one working weekday and holidays are finite
        while not self.is_working_day(day):
            day += ONE_DAY
        return day

    def following_working_day(self, day: date) -> date:
        """Get the first working day strictly after ``day``."""
        return self.next_working_day(day + ONE_DAY)

    def add_working_days(self, start: date, units: float) -> date:
        """Get the end date after consuming ``units`` working days from ``start``.

        ``start`` counts as the first working day when it is one. Fractional
        units occupy a whole day. Zero units is a non-consuming request and
        returns ``start`` unchanged.

        Args:
            start: First candidate day
            units: Working days to consume (must not be negative)

        Returns:
            Date of the last consumed working day (inclusive end)
        """
        if units < 0:
            raise ValueError(f"Cannot consume a negative number of working days: {units}")
        if units <= _EPSILON:
            return start

        days_needed = math.ceil(units - _EPSILON)
        current = self.next_working_day(start)
        for _ in range(days_needed - 1):
            current = self.following_working_day(current)
        return current

    def count_working_days(self, start: date, end: date) -> int:
        """Count working days in the inclusive range ``[start, end]``."""
        if end < start:
            return 0

        total_days = (end - start).days + 1
        full_weeks, extra_days = divmod(total_days, 7)
        count = full_weeks * self.working_days_per_week

        for offset in range(extra_days):
            if (start + timedelta(days=offset)).weekday() not in self._non_working_weekdays:
                count += 1

        # Holidays on a working weekday inside the range
        count -= sum(
            1
            for holiday in self._holidays
            if start <= holiday <= end and holiday.weekday() not in self._non_working_weekdays
        )
        return count
