"""
Overlap detection between a candidate slot and booked appointments.
"""

from typing import Iterable, List, Optional

from .models import AppointmentInterval, TimeLike
from .time_arithmetic import ranges_overlap, time_to_minutes


def find_conflicts(
    candidate_start: TimeLike,
    duration_minutes: int,
    existing: Iterable[AppointmentInterval],
    exclude_id: Optional[str] = None,
    buffer_minutes: int = 0,
) -> List[AppointmentInterval]:
    """
    Return every existing appointment the candidate would collide with.

    The buffer widens each *existing* appointment on both sides; the
    candidate keeps its own bounds. ``exclude_id`` skips the appointment
    being edited. Works on raw minute offsets so a widened footprint may
    extend before midnight or past 23:59 without wrapping.
    """
    if buffer_minutes < 0:
        raise ValueError(f"buffer_minutes must not be negative, got {buffer_minutes}")

    start = time_to_minutes(candidate_start)
    end = start + duration_minutes

    conflicts: List[AppointmentInterval] = []
    for appointment in existing:
        if exclude_id is not None and appointment.id == exclude_id:
            continue
        blocked_start = appointment.start_time.minutes - buffer_minutes
        blocked_end = appointment.start_time.minutes + appointment.duration_minutes + buffer_minutes
        if ranges_overlap(start, end, blocked_start, blocked_end):
            conflicts.append(appointment)
    return conflicts


def has_conflict(
    candidate_start: TimeLike,
    duration_minutes: int,
    existing: Iterable[AppointmentInterval],
    exclude_id: Optional[str] = None,
    buffer_minutes: int = 0,
) -> bool:
    return bool(
        find_conflicts(
            candidate_start,
            duration_minutes,
            existing,
            exclude_id=exclude_id,
            buffer_minutes=buffer_minutes,
        )
    )
