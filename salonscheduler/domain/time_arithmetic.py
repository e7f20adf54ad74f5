"""
Clock-time arithmetic on minute offsets from midnight.

Low-level helpers wrap past midnight silently; callers that care about
overflow (slot generation, booking validation) check it themselves.
"""

import re
from typing import Union

from .exceptions import InvalidTimeFormat
from .models import MINUTES_PER_DAY, ClockTime, TimeLike

DEFAULT_SLOT_INTERVAL = 15

_TWELVE_HOUR_PATTERN = re.compile(r"^(\d{1,2})(?::([0-5][0-9]))?\s*([ap])\.?m\.?$")

Boundary = Union[TimeLike, int]


def time_to_minutes(value: TimeLike) -> int:
    """Convert a clock time to minutes since midnight (0-1439)."""
    return ClockTime.coerce(value).minutes


def minutes_to_time(minutes: int) -> ClockTime:
    """Convert minutes since midnight to a clock time, wrapping modulo 24h."""
    wrapped = minutes % MINUTES_PER_DAY
    return ClockTime(hour=wrapped // 60, minute=wrapped % 60)


def add_minutes(value: TimeLike, minutes: int) -> ClockTime:
    """Add (or subtract) minutes, wrapping past midnight."""
    return minutes_to_time(time_to_minutes(value) + minutes)


def end_wraps_midnight(start: TimeLike, duration_minutes: int) -> bool:
    """True if an appointment of this length would end on the next day."""
    return time_to_minutes(start) + duration_minutes >= MINUTES_PER_DAY


def _as_minutes(value: Boundary) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return time_to_minutes(value)


def ranges_overlap(start1: Boundary, end1: Boundary, start2: Boundary, end2: Boundary) -> bool:
    """
    Half-open overlap test for [start1, end1) and [start2, end2).

    Back-to-back ranges (end1 == start2) do not overlap. Integer bounds are
    taken as raw minute offsets and may lie outside 0-1439.
    """
    return _as_minutes(start1) < _as_minutes(end2) and _as_minutes(start2) < _as_minutes(end1)


def duration_minutes(start: TimeLike, end: TimeLike) -> int:
    """
    Minutes from start to end; an end before the start spans midnight.

    Display only, never used for slot generation.
    """
    start_minutes = time_to_minutes(start)
    end_minutes = time_to_minutes(end)
    if end_minutes < start_minutes:
        return MINUTES_PER_DAY - start_minutes + end_minutes
    return end_minutes - start_minutes


def round_to_interval(value: TimeLike, interval_minutes: int = DEFAULT_SLOT_INTERVAL) -> ClockTime:
    """Round to the nearest slot boundary (halves round up)."""
    minutes = time_to_minutes(value)
    return minutes_to_time(((minutes + interval_minutes // 2) // interval_minutes) * interval_minutes)


def next_slot_boundary(value: TimeLike, interval_minutes: int = DEFAULT_SLOT_INTERVAL) -> ClockTime:
    """Smallest slot boundary at or after the given time."""
    minutes = time_to_minutes(value)
    return minutes_to_time(-(-minutes // interval_minutes) * interval_minutes)


def previous_slot_boundary(value: TimeLike, interval_minutes: int = DEFAULT_SLOT_INTERVAL) -> ClockTime:
    """Largest slot boundary at or before the given time."""
    minutes = time_to_minutes(value)
    return minutes_to_time((minutes // interval_minutes) * interval_minutes)


def is_valid_time(value: object) -> bool:
    if not isinstance(value, str):
        return False
    try:
        ClockTime.parse(value)
    except InvalidTimeFormat:
        return False
    return True


def parse_time(value: str) -> ClockTime:
    """
    Parse 24-hour (``"14:30"``) or 12-hour (``"2:30 pm"``, ``"12am"``) input.

    Raises:
        InvalidTimeFormat: If the string is neither.
    """
    if not isinstance(value, str):
        raise InvalidTimeFormat(f"Expected a time string, got {value!r}")

    cleaned = value.strip().lower()
    match = _TWELVE_HOUR_PATTERN.match(cleaned)
    if not match:
        return ClockTime.parse(cleaned)

    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    if not 1 <= hour <= 12:
        raise InvalidTimeFormat(f"Invalid 12-hour time: {value!r}")

    is_pm = match.group(3) == "p"
    if is_pm and hour != 12:
        hour += 12
    elif not is_pm and hour == 12:
        hour = 0
    return ClockTime(hour=hour, minute=minute)


def format_12h(value: TimeLike) -> str:
    """Format as ``"2:30 PM"``."""
    clock = ClockTime.coerce(value)
    period = "PM" if clock.hour >= 12 else "AM"
    hour12 = clock.hour % 12 or 12
    return f"{hour12}:{clock.minute:02d} {period}"


def format_duration(minutes: int) -> str:
    """Human readable duration: ``"45 min"``, ``"2h"``, ``"1h 30min"``."""
    if minutes < 60:
        return f"{minutes} min"
    hours, remainder = divmod(minutes, 60)
    if remainder == 0:
        return f"{hours}h"
    return f"{hours}h {remainder}min"
