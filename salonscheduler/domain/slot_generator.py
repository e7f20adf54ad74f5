"""
Candidate start times for a weekday and service duration.
"""

from typing import List

from .business_calendar import BusinessCalendar
from .exceptions import InvalidDuration
from .models import ClockTime
from .time_arithmetic import DEFAULT_SLOT_INTERVAL, minutes_to_time


class SlotGenerator:
    """
    Enumerates fixed-interval start times inside the day's business hours.

    A start time is kept only if the whole service fits before closing, so
    partial trailing slots never appear.
    """

    def __init__(self, calendar: BusinessCalendar):
        self.calendar = calendar

    def generate_candidates(
        self,
        day_of_week: int,
        duration_minutes: int,
        interval_minutes: int = DEFAULT_SLOT_INTERVAL,
    ) -> List[ClockTime]:
        """
        Args:
            day_of_week: 0=Monday, 6=Sunday
            duration_minutes: Length of the service
            interval_minutes: Sampling step, starting exactly at opening time

        Returns:
            Ascending start times; empty for a closed day or a service longer
            than the opening window.
        """
        if interval_minutes <= 0:
            raise InvalidDuration(f"Slot interval must be positive, got {interval_minutes}")
        if duration_minutes <= 0:
            raise InvalidDuration(f"Duration must be positive, got {duration_minutes}")

        hours = self.calendar.hours_for(day_of_week)
        if hours is None:
            return []

        open_minutes = hours.open.minutes
        close_minutes = hours.close.minutes

        return [
            minutes_to_time(start)
            for start in range(open_minutes, close_minutes, interval_minutes)
            if start + duration_minutes <= close_minutes
        ]
