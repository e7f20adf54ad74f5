"""
Domain models for clock times, closures and appointment intervals.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import time
from typing import Iterator, List, Optional, Tuple, Union

from pendulum import Date

from .exceptions import InvalidDuration, InvalidTimeFormat

MINUTES_PER_DAY = 24 * 60

_CLOCK_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")


@dataclass(frozen=True, order=True)
class ClockTime:
    """
    A wall-clock time of day, serialized as ``"HH:MM"``.

    Invariant: 0 <= hour <= 23 and 0 <= minute <= 59.
    """
    hour: int
    minute: int = 0

    def __post_init__(self):
        if isinstance(self.hour, bool) or isinstance(self.minute, bool):
            raise InvalidTimeFormat(f"Invalid clock time: {self.hour!r}:{self.minute!r}")
        if not isinstance(self.hour, int) or not isinstance(self.minute, int):
            raise InvalidTimeFormat(f"Invalid clock time: {self.hour!r}:{self.minute!r}")
        if not 0 <= self.hour <= 23 or not 0 <= self.minute <= 59:
            raise InvalidTimeFormat(f"Clock time out of range: {self.hour}:{self.minute:02d}")

    @classmethod
    def parse(cls, value: str) -> "ClockTime":
        """Parse an ``"HH:MM"`` (or ``"H:MM"``) string."""
        if not isinstance(value, str):
            raise InvalidTimeFormat(f"Expected an 'HH:MM' string, got {value!r}")
        match = _CLOCK_PATTERN.match(value.strip())
        if not match:
            raise InvalidTimeFormat(f"Invalid time format (use HH:MM): {value!r}")
        return cls(hour=int(match.group(1)), minute=int(match.group(2)))

    @classmethod
    def coerce(cls, value: "TimeLike") -> "ClockTime":
        """Accept a ClockTime, an ``"HH:MM"`` string or a ``datetime.time``."""
        if isinstance(value, ClockTime):
            return value
        if isinstance(value, time):
            return cls(hour=value.hour, minute=value.minute)
        return cls.parse(value)

    @property
    def minutes(self) -> int:
        """Minutes since midnight."""
        return self.hour * 60 + self.minute

    def to_time(self) -> time:
        return time(hour=self.hour, minute=self.minute)

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


TimeLike = Union[ClockTime, str, time]


@dataclass(frozen=True)
class BusinessHours:
    """
    Opening window for one weekday (0=Monday, 6=Sunday).

    Invariant: open must be before close.
    """
    day_of_week: int
    open: ClockTime
    close: ClockTime

    def __post_init__(self):
        if self.day_of_week not in range(7):
            raise ValueError(f"day_of_week must be between 0 and 6, got {self.day_of_week}")
        if self.open >= self.close:
            raise ValueError(f"Opening time {self.open} must be before closing time {self.close}")

    def length_minutes(self) -> int:
        return self.close.minutes - self.open.minutes

    def __str__(self) -> str:
        return f"{self.open} - {self.close}"


@dataclass(frozen=True)
class ClosurePeriod:
    """
    An inclusive range of days on which no bookings are accepted.

    Invariant: start_date <= end_date.
    """
    id: str
    start_date: Date
    end_date: Date
    reason: str = ""

    def __post_init__(self):
        if self.start_date > self.end_date:
            raise ValueError(
                f"Closure start {self.start_date} must not be after its end {self.end_date}"
            )

    def contains(self, day: Date) -> bool:
        return self.start_date <= day <= self.end_date

    def overlaps(self, start: Date, end: Date) -> bool:
        return self.start_date <= end and start <= self.end_date

    def length_days(self) -> int:
        return self.end_date.toordinal() - self.start_date.toordinal() + 1


@dataclass(frozen=True)
class AppointmentInterval:
    """
    A booked appointment on one local day.

    Invariant: end_time == start_time + duration_minutes, without crossing
    midnight.
    """
    id: Optional[str]
    date: Date
    start_time: ClockTime
    end_time: ClockTime
    duration_minutes: int
    appointment_type: str = ""
    customer_name: str = ""

    def __post_init__(self):
        if self.duration_minutes <= 0:
            raise InvalidDuration(f"Duration must be positive, got {self.duration_minutes}")
        if self.start_time.minutes + self.duration_minutes > MINUTES_PER_DAY:
            raise InvalidDuration(
                f"Appointment starting at {self.start_time} for {self.duration_minutes} "
                "minutes would run past midnight"
            )
        if self.start_time.minutes + self.duration_minutes == MINUTES_PER_DAY:
            raise InvalidDuration(f"Appointment starting at {self.start_time} would end at midnight")
        if self.start_time.minutes + self.duration_minutes != self.end_time.minutes:
            raise ValueError(
                f"End time {self.end_time} does not match start {self.start_time} "
                f"+ {self.duration_minutes} minutes"
            )

    @classmethod
    def create(
        cls,
        id: Optional[str],
        date: Date,
        start_time: TimeLike,
        duration_minutes: int,
        appointment_type: str = "",
        customer_name: str = "",
    ) -> "AppointmentInterval":
        """Build an interval, computing the end time from start and duration."""
        start = ClockTime.coerce(start_time)
        end_minutes = start.minutes + duration_minutes
        if duration_minutes <= 0:
            raise InvalidDuration(f"Duration must be positive, got {duration_minutes}")
        if end_minutes > MINUTES_PER_DAY:
            raise InvalidDuration(
                f"Appointment starting at {start} for {duration_minutes} minutes "
                "would run past midnight"
            )
        # 24:00 has no ClockTime representation.
        if end_minutes == MINUTES_PER_DAY:
            raise InvalidDuration(f"Appointment starting at {start} would end at midnight")
        end = ClockTime(hour=end_minutes // 60, minute=end_minutes % 60)
        return cls(
            id=id,
            date=date,
            start_time=start,
            end_time=end,
            duration_minutes=duration_minutes,
            appointment_type=appointment_type,
            customer_name=customer_name,
        )

    def with_id(self, new_id: str) -> "AppointmentInterval":
        return AppointmentInterval(
            id=new_id,
            date=self.date,
            start_time=self.start_time,
            end_time=self.end_time,
            duration_minutes=self.duration_minutes,
            appointment_type=self.appointment_type,
            customer_name=self.customer_name,
        )

    def __str__(self) -> str:
        return f"{self.date.isoformat()} {self.start_time}-{self.end_time}"


@dataclass(frozen=True)
class SlotRequest:
    """Ephemeral input for an availability query."""
    date: Date
    duration_minutes: int
    buffer_minutes: int = 0
    appointment_type: str = ""


@dataclass(frozen=True)
class AvailabilityResult:
    """Ordered, duplicate-free bookable start times for one day."""
    date: Date
    slots: Tuple[ClockTime, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[ClockTime]:
        return iter(self.slots)

    def __len__(self) -> int:
        return len(self.slots)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, str):
            return any(str(slot) == item for slot in self.slots)
        return item in self.slots

    def as_strings(self) -> List[str]:
        return [str(slot) for slot in self.slots]
