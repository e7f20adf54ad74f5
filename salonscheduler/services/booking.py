"""
Application service for slot queries and conflict-safe bookings.

The service fetches a fresh snapshot of appointments and closures from the
storage collaborators on every call and hands it to the domain-level
``AvailabilityEngine``. Commits go through the sink's transaction so that
the same conflict check runs again at write time. Nothing is cached here.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Union

from pendulum import Date

from ..domain.availability import AvailabilityEngine
from ..domain.closures import is_date_closed
from ..domain.exceptions import BookingRejection
from ..domain.models import AppointmentInterval, AvailabilityResult, ClosurePeriod, TimeLike

logger = logging.getLogger(__name__)

ConflictCheck = Callable[[Sequence[AppointmentInterval]], Optional[BookingRejection]]
CommitResult = Union[AppointmentInterval, BookingRejection]


class AppointmentSource(Protocol):
    """Read access to booked appointments."""

    def fetch_appointments_for_date(self, date: Date) -> List[AppointmentInterval]:
        """Return every appointment on the given local day."""

    def fetch_appointments_in_range(self, start: Date, end: Date) -> List[AppointmentInterval]:
        """Return every appointment from start to end, both inclusive."""


class ClosureSource(Protocol):
    """Read access to closure periods."""

    def fetch_active_closures(self) -> List[ClosurePeriod]:
        """Return closure periods that have not ended yet."""


class CommitSink(Protocol):
    """
    Transactional writes.

    Implementations read the current appointments for the candidate's day
    inside their transaction, call ``conflict_check`` with them, and only
    write when it returns None. A rejection is returned, not raised.
    """

    def create_appointment_transactional(
        self,
        candidate: AppointmentInterval,
        conflict_check: ConflictCheck,
    ) -> CommitResult:
        """Store a new appointment, returning it with its assigned id."""

    def update_appointment_transactional(
        self,
        candidate: AppointmentInterval,
        conflict_check: ConflictCheck,
    ) -> CommitResult:
        """Replace the appointment whose id matches the candidate's."""


class BookingService:
    """
    Orchestrates snapshot retrieval, availability and commits.

    Collaborators are injected as protocols so the in-memory store and the
    Firestore adapter are interchangeable.
    """

    def __init__(
        self,
        engine: AvailabilityEngine,
        appointments: AppointmentSource,
        closures: ClosureSource,
        sink: CommitSink,
        buffer_minutes: int = 0,
    ) -> None:
        self._engine = engine
        self._appointments = appointments
        self._closures = closures
        self._sink = sink
        self._buffer_minutes = buffer_minutes

    @property
    def engine(self) -> AvailabilityEngine:
        return self._engine

    def available_slots(
        self,
        *,
        date: Any,
        appointment_type: str,
        duration_minutes: int,
        buffer_minutes: Optional[int] = None,
    ) -> AvailabilityResult:
        """Bookable start times for one day, from a fresh snapshot."""
        day = self._engine.normalize_date(date)
        buffer = self._resolve_buffer(buffer_minutes)

        closures = self._closures.fetch_active_closures()
        # Skip the appointment read when the day is not bookable anyway
        if self._engine.day_rejection(day, closures) is not None:
            self._engine.check_duration(duration_minutes, appointment_type)
            return AvailabilityResult(date=day)

        existing = self._appointments.fetch_appointments_for_date(day)
        result = self._engine.get_available_slots(
            day,
            appointment_type,
            duration_minutes,
            existing,
            closures,
            buffer_minutes=buffer,
        )
        logger.debug(
            "%d slot(s) free on %s for %s (%d min, buffer %d)",
            len(result), day.isoformat(), appointment_type or "any service",
            duration_minutes, buffer,
        )
        return result

    def upcoming_availability(
        self,
        *,
        start: Any,
        days: int,
        appointment_type: str,
        duration_minutes: int,
        buffer_minutes: Optional[int] = None,
    ) -> Dict[Date, AvailabilityResult]:
        """
        Slots for each business day in a window, using one range read.

        Days with no free slot are included with an empty result.
        """
        if days <= 0:
            raise ValueError(f"days must be positive, got {days}")

        first = self._engine.normalize_date(start)
        last = first.add(days=days - 1)
        buffer = self._resolve_buffer(buffer_minutes)

        closures = self._closures.fetch_active_closures()
        existing = self._appointments.fetch_appointments_in_range(first, last)

        availability: Dict[Date, AvailabilityResult] = {}
        for day in self._engine.calendar.business_days_between(first, last):
            availability[day] = self._engine.get_available_slots(
                day,
                appointment_type,
                duration_minutes,
                existing,
                closures,
                buffer_minutes=buffer,
            )
        return availability

    def is_date_closed(self, date: Any) -> bool:
        """Distinguishes "closed" from "fully booked" for an empty result."""
        day = self._engine.normalize_date(date)
        return is_date_closed(day, self._closures.fetch_active_closures())

    def book(
        self,
        *,
        date: Any,
        start_time: TimeLike,
        duration_minutes: int,
        appointment_type: str = "",
        customer_name: str = "",
        buffer_minutes: Optional[int] = None,
    ) -> AppointmentInterval:
        """
        Create an appointment if the slot is still free at commit time.

        Raises:
            BookingRejection: ConflictError, ClosedDateError or OutsideBusinessHours.
        """
        day = self._engine.normalize_date(date)
        self._engine.check_duration(duration_minutes, appointment_type)
        candidate = AppointmentInterval.create(
            id=None,
            date=day,
            start_time=start_time,
            duration_minutes=duration_minutes,
            appointment_type=appointment_type,
            customer_name=customer_name,
        )
        check = self._conflict_check(candidate, exclude_id=None, buffer_minutes=buffer_minutes)

        outcome = self._sink.create_appointment_transactional(candidate, check)
        return self._unwrap(outcome, candidate)

    def reschedule(
        self,
        *,
        appointment_id: str,
        date: Any,
        start_time: TimeLike,
        duration_minutes: int,
        appointment_type: str = "",
        customer_name: str = "",
        buffer_minutes: Optional[int] = None,
    ) -> AppointmentInterval:
        """
        Move an existing appointment; it never conflicts with itself.

        Raises:
            BookingRejection: As for ``book``.
        """
        day = self._engine.normalize_date(date)
        self._engine.check_duration(duration_minutes, appointment_type)
        candidate = AppointmentInterval.create(
            id=appointment_id,
            date=day,
            start_time=start_time,
            duration_minutes=duration_minutes,
            appointment_type=appointment_type,
            customer_name=customer_name,
        )
        check = self._conflict_check(candidate, exclude_id=appointment_id, buffer_minutes=buffer_minutes)

        outcome = self._sink.update_appointment_transactional(candidate, check)
        return self._unwrap(outcome, candidate)

    def _conflict_check(
        self,
        candidate: AppointmentInterval,
        *,
        exclude_id: Optional[str],
        buffer_minutes: Optional[int],
    ) -> ConflictCheck:
        buffer = self._resolve_buffer(buffer_minutes)
        closures = self._closures.fetch_active_closures()

        def check(existing: Sequence[AppointmentInterval]) -> Optional[BookingRejection]:
            return self._engine.validate_booking(
                candidate.date,
                candidate.start_time,
                candidate.duration_minutes,
                existing,
                closures,
                exclude_id=exclude_id,
                buffer_minutes=buffer,
                appointment_type=candidate.appointment_type,
            )

        return check

    def _resolve_buffer(self, buffer_minutes: Optional[int]) -> int:
        return self._buffer_minutes if buffer_minutes is None else buffer_minutes

    @staticmethod
    def _unwrap(outcome: CommitResult, candidate: AppointmentInterval) -> AppointmentInterval:
        if isinstance(outcome, BookingRejection):
            logger.info("Booking %s rejected: %s", candidate, outcome)
            raise outcome
        logger.info("Booked %s (id %s)", outcome, outcome.id)
        return outcome
