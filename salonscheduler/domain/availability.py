"""
Availability engine: the scheduling entry point.

Composes the business calendar, the closure registry, the slot generator and
the conflict detector. It is stateless: every call works on the snapshot of
appointments and closures handed in by the caller, and nothing is cached,
since a stale snapshot is exactly what causes double-booking.
"""

from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence

from pendulum import Date

from .business_calendar import BusinessCalendar
from .closures import closure_for
from .conflict_detector import find_conflicts
from .dates import DEFAULT_TIMEZONE, is_past_date, same_local_day, to_local_date, today as local_today
from .exceptions import (
    BookingRejection,
    ClosedDateError,
    ConflictError,
    InvalidDuration,
    OutsideBusinessHours,
    UnknownAppointmentType,
)
from .models import (
    AppointmentInterval,
    AvailabilityResult,
    ClockTime,
    ClosurePeriod,
    SlotRequest,
    TimeLike,
)
from .slot_generator import SlotGenerator
from .time_arithmetic import DEFAULT_SLOT_INTERVAL, end_wraps_midnight

MINIMUM_APPOINTMENT_DURATION = 15
MAXIMUM_APPOINTMENT_DURATION = 480


class AvailabilityEngine:
    """
    Computes bookable slots and validates a specific booking.

    Algorithm for a slot query:
    1. Normalize the date to the salon-local day
    2. Closed by a closure period -> nothing
    3. In the past or on a closed weekday -> nothing
    4. Generate candidates for the weekday
    5. Keep only appointments on the same local day
    6. Drop candidates that collide (with buffer)
    7. Return the rest in ascending order
    """

    def __init__(
        self,
        calendar: BusinessCalendar,
        timezone: str = DEFAULT_TIMEZONE,
        interval_minutes: int = DEFAULT_SLOT_INTERVAL,
        min_duration_minutes: int = MINIMUM_APPOINTMENT_DURATION,
        max_duration_minutes: int = MAXIMUM_APPOINTMENT_DURATION,
        catalog: Optional[Mapping[str, Sequence[int]]] = None,
        today: Optional[Callable[[], Date]] = None,
    ):
        if interval_minutes <= 0:
            raise InvalidDuration(f"Slot interval must be positive, got {interval_minutes}")
        if not 0 < min_duration_minutes <= max_duration_minutes:
            raise InvalidDuration(
                f"Invalid duration bounds {min_duration_minutes}-{max_duration_minutes}"
            )
        self.calendar = calendar
        self.timezone = timezone
        self.interval_minutes = interval_minutes
        self.min_duration_minutes = min_duration_minutes
        self.max_duration_minutes = max_duration_minutes
        self.catalog = catalog
        self._today = today or (lambda: local_today(self.timezone))
        self._generator = SlotGenerator(calendar)

    def normalize_date(self, value: Any) -> Date:
        return to_local_date(value, self.timezone)

    def get_available_slots(
        self,
        date: Any,
        appointment_type: str,
        duration_minutes: int,
        existing_appointments: Iterable[AppointmentInterval],
        closures: Iterable[ClosurePeriod],
        buffer_minutes: int = 0,
    ) -> AvailabilityResult:
        """
        Bookable start times for one day.

        An empty result does not say *why* nothing is free; call
        ``day_rejection`` (or ``closures.is_date_closed``) to find out.

        Raises:
            InvalidDateFormat: If the date cannot be resolved.
            InvalidDuration: If the duration is outside the accepted bounds.
            UnknownAppointmentType: If a catalogue is configured and the type is unknown.
        """
        day = self.normalize_date(date)
        self.check_duration(duration_minutes, appointment_type)
        if buffer_minutes < 0:
            raise ValueError(f"buffer_minutes must not be negative, got {buffer_minutes}")

        if self.day_rejection(day, closures) is not None:
            return AvailabilityResult(date=day)

        candidates = self._generator.generate_candidates(
            day.weekday(),
            duration_minutes,
            self.interval_minutes,
        )

        same_day = self._appointments_on(day, existing_appointments)

        free = [
            candidate
            for candidate in candidates
            if not find_conflicts(
                candidate,
                duration_minutes,
                same_day,
                buffer_minutes=buffer_minutes,
            )
        ]

        return AvailabilityResult(date=day, slots=tuple(sorted(set(free))))

    def get_slots_for_request(
        self,
        request: SlotRequest,
        existing_appointments: Iterable[AppointmentInterval],
        closures: Iterable[ClosurePeriod],
    ) -> AvailabilityResult:
        return self.get_available_slots(
            request.date,
            request.appointment_type,
            request.duration_minutes,
            existing_appointments,
            closures,
            buffer_minutes=request.buffer_minutes,
        )

    def validate_booking(
        self,
        date: Any,
        start_time: TimeLike,
        duration_minutes: int,
        existing_appointments: Iterable[AppointmentInterval],
        closures: Iterable[ClosurePeriod],
        exclude_id: Optional[str] = None,
        buffer_minutes: int = 0,
        appointment_type: str = "",
    ) -> Optional[BookingRejection]:
        """
        Authoritative check for one requested slot.

        Must be re-run inside the storage transaction at commit time because
        an availability list read earlier may be stale.

        Returns:
            None when the slot can be booked, otherwise the rejection
            (ConflictError, ClosedDateError or OutsideBusinessHours).
        """
        day = self.normalize_date(date)
        start = ClockTime.coerce(start_time)
        self.check_duration(duration_minutes, appointment_type)

        rejection = self.day_rejection(day, closures)
        if rejection is not None:
            return rejection

        hours = self.calendar.hours_for(day.weekday())
        if end_wraps_midnight(start, duration_minutes):
            return OutsideBusinessHours(
                f"An appointment at {start} for {duration_minutes} minutes would run past midnight"
            )
        if start < hours.open or start.minutes + duration_minutes > hours.close.minutes:
            return OutsideBusinessHours(
                f"{start} for {duration_minutes} minutes does not fit inside business hours {hours}"
            )

        conflicts = find_conflicts(
            start,
            duration_minutes,
            self._appointments_on(day, existing_appointments),
            exclude_id=exclude_id,
            buffer_minutes=buffer_minutes,
        )
        if conflicts:
            return ConflictError(conflicts)
        return None

    def day_rejection(self, date: Any, closures: Iterable[ClosurePeriod]) -> Optional[ClosedDateError]:
        """Why a whole day cannot be booked, or None if it can."""
        day = self.normalize_date(date)
        closure = closure_for(day, closures)
        if closure is not None:
            return ClosedDateError(day, ClosedDateError.CLOSURE, closure)
        if is_past_date(day, self._today()):
            return ClosedDateError(day, ClosedDateError.PAST)
        if not self.calendar.is_open(day.weekday()):
            return ClosedDateError(day, ClosedDateError.CLOSED_WEEKDAY)
        return None

    def check_duration(self, duration_minutes: int, appointment_type: str = "") -> None:
        """
        Raises:
            InvalidDuration: Outside the bounds or not offered for the type.
            UnknownAppointmentType: Type missing from the configured catalogue.
        """
        if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
            raise InvalidDuration(f"Duration must be a whole number of minutes, got {duration_minutes!r}")
        if not self.min_duration_minutes <= duration_minutes <= self.max_duration_minutes:
            raise InvalidDuration(
                f"Duration must be between {self.min_duration_minutes} and "
                f"{self.max_duration_minutes} minutes, got {duration_minutes}"
            )

        if self.catalog is None or not appointment_type:
            return
        if appointment_type not in self.catalog:
            raise UnknownAppointmentType(f"Unknown appointment type: {appointment_type!r}")
        allowed = self.catalog[appointment_type]
        if allowed and duration_minutes not in allowed:
            offered = ", ".join(str(d) for d in allowed)
            raise InvalidDuration(
                f"{appointment_type!r} is offered for {offered} minutes, not {duration_minutes}"
            )

    def _appointments_on(self, day: Date, appointments: Iterable[AppointmentInterval]) -> List[AppointmentInterval]:
        return [
            appointment
            for appointment in appointments
            if same_local_day(appointment.date, day, self.timezone)
        ]
