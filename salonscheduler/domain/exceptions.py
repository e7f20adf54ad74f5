"""
Domain-specific exception hierarchy for the salon scheduler.

Format errors are raised. Booking rejections are normally *returned* by the
availability engine so callers can tell "no such slot" from "slot just got
taken"; they are still exceptions so a transactional commit can raise them to
abort.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence, Tuple

if TYPE_CHECKING:  # pragma: no cover
    from pendulum import Date

    from .models import AppointmentInterval, ClosurePeriod


class SchedulingError(Exception):
    """Base class for all application-level errors."""


class InvalidTimeFormat(SchedulingError, ValueError):
    """Raised when a clock time is malformed or out of range."""


class InvalidDateFormat(SchedulingError, ValueError):
    """Raised when a date cannot be resolved to a single local day."""


class InvalidDuration(SchedulingError, ValueError):
    """Raised when a duration or interval is not acceptable."""


class UnknownAppointmentType(SchedulingError, ValueError):
    """Raised when an appointment type is not in the service catalogue."""


class InvalidClosure(SchedulingError, ValueError):
    """Raised when a closure period fails validation."""


class ClosureOverlapError(InvalidClosure):
    """Raised when a new closure period overlaps an existing one."""

    def __init__(self, overlapping: Sequence["ClosurePeriod"]):
        self.overlapping: Tuple["ClosurePeriod", ...] = tuple(overlapping)
        ids = ", ".join(str(period.id) for period in self.overlapping)
        super().__init__(f"Closure period overlaps existing period(s): {ids}")


class PersistenceError(SchedulingError):
    """Raised when the storage collaborator fails."""


class BookingRejection(SchedulingError):
    """Base class for expected, recoverable booking outcomes."""


class ConflictError(BookingRejection):
    """The requested slot collides with one or more existing appointments."""

    def __init__(self, conflicts: Sequence["AppointmentInterval"]):
        self.conflicts: Tuple["AppointmentInterval", ...] = tuple(conflicts)
        described = ", ".join(
            f"{c.start_time}-{c.end_time}" for c in self.conflicts
        )
        super().__init__(f"Time slot conflicts with existing appointment(s): {described}")


class ClosedDateError(BookingRejection):
    """The requested date cannot be booked at all."""

    CLOSURE = "closure"
    PAST = "past"
    CLOSED_WEEKDAY = "closed_weekday"

    def __init__(self, date: "Date", cause: str, closure: "ClosurePeriod | None" = None):
        self.date = date
        self.cause = cause
        self.closure = closure
        if cause == self.CLOSURE and closure is not None and closure.reason:
            message = f"{date.isoformat()} is closed: {closure.reason}"
        elif cause == self.PAST:
            message = f"{date.isoformat()} is in the past"
        elif cause == self.CLOSED_WEEKDAY:
            message = f"The salon is closed on {date.strftime('%A')}s"
        else:
            message = f"{date.isoformat()} is closed"
        super().__init__(message)


class OutsideBusinessHours(BookingRejection):
    """The requested slot does not fit inside the day's business hours."""
