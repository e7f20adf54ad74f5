"""
Weekly opening hours of the salon.
"""

from typing import Dict, List, Mapping, Optional

from pendulum import Date

from .dates import iter_days
from .models import BusinessHours, ClockTime, TimeLike

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

# 0=Monday, 6=Sunday; weekdays missing from the table are closed
DEFAULT_HOURS = {
    0: ("09:00", "19:00"),
    1: ("10:00", "20:00"),
    2: ("09:00", "19:00"),
    3: ("10:00", "20:00"),
    4: ("09:00", "18:30"),
}


class BusinessCalendar:
    """
    Static per-weekday opening windows.

    Built once from configuration at startup and read-only afterwards.
    """

    def __init__(self, hours: Mapping[int, Optional[BusinessHours]]):
        self._hours: Dict[int, Optional[BusinessHours]] = {day: None for day in range(7)}
        for day, entry in hours.items():
            if day not in range(7):
                raise ValueError(f"day_of_week must be between 0 and 6, got {day}")
            if entry is not None and entry.day_of_week != day:
                raise ValueError(f"Hours for weekday {entry.day_of_week} stored under {day}")
            self._hours[day] = entry

    @classmethod
    def from_table(cls, table: Mapping[int, Optional[tuple]]) -> "BusinessCalendar":
        """Build from ``{weekday: ("HH:MM", "HH:MM") or None}``."""
        hours = {}
        for day, window in table.items():
            if window is None:
                hours[day] = None
                continue
            open_time, close_time = window
            hours[day] = BusinessHours(
                day_of_week=day,
                open=ClockTime.coerce(open_time),
                close=ClockTime.coerce(close_time),
            )
        return cls(hours)

    @classmethod
    def default(cls) -> "BusinessCalendar":
        return cls.from_table(DEFAULT_HOURS)

    def hours_for(self, day_of_week: int) -> Optional[BusinessHours]:
        return self._hours.get(day_of_week)

    def is_open(self, day_of_week: int) -> bool:
        return self.hours_for(day_of_week) is not None

    def is_within_hours(self, value: TimeLike, day_of_week: int) -> bool:
        """True if the day is open and open <= time < close."""
        hours = self.hours_for(day_of_week)
        if hours is None:
            return False
        clock = ClockTime.coerce(value)
        return hours.open <= clock < hours.close

    def is_business_day(self, day: Date) -> bool:
        return self.is_open(day.weekday())

    def next_business_day(self, day: Date) -> Optional[Date]:
        """First open day strictly after ``day``, or None if every weekday is closed."""
        candidate = day
        for _ in range(7):
            candidate = candidate.add(days=1)
            if self.is_business_day(candidate):
                return candidate
        return None

    def previous_business_day(self, day: Date) -> Optional[Date]:
        candidate = day
        for _ in range(7):
            candidate = candidate.subtract(days=1)
            if self.is_business_day(candidate):
                return candidate
        return None

    def business_days_between(self, start: Date, end: Date) -> List[Date]:
        """Open days from start to end, both inclusive."""
        return [day for day in iter_days(start, end) if self.is_business_day(day)]

    def summary(self) -> Dict[str, str]:
        """Weekday name -> ``"09:00 - 19:00"`` or ``"Closed"``."""
        return {
            WEEKDAY_NAMES[day]: str(hours) if hours else "Closed"
            for day, hours in sorted(self._hours.items())
        }
