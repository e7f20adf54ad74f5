"""
Domain layer - Pure scheduling logic without external dependencies.
"""

from .availability import AvailabilityEngine
from .business_calendar import BusinessCalendar
from .exceptions import (
    BookingRejection,
    ClosedDateError,
    ClosureOverlapError,
    ConflictError,
    InvalidClosure,
    InvalidDateFormat,
    InvalidDuration,
    InvalidTimeFormat,
    OutsideBusinessHours,
    PersistenceError,
    SchedulingError,
    UnknownAppointmentType,
)
from .models import (
    AppointmentInterval,
    AvailabilityResult,
    BusinessHours,
    ClockTime,
    ClosurePeriod,
    SlotRequest,
)
from .slot_generator import SlotGenerator

__all__ = [
    "AppointmentInterval",
    "AvailabilityEngine",
    "AvailabilityResult",
    "BookingRejection",
    "BusinessCalendar",
    "BusinessHours",
    "ClockTime",
    "ClosedDateError",
    "ClosureOverlapError",
    "ClosurePeriod",
    "ConflictError",
    "InvalidClosure",
    "InvalidDateFormat",
    "InvalidDuration",
    "InvalidTimeFormat",
    "OutsideBusinessHours",
    "PersistenceError",
    "SchedulingError",
    "SlotGenerator",
    "SlotRequest",
    "UnknownAppointmentType",
]
