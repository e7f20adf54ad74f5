"""
In-memory appointment and closure store.

Implements the appointment source, closure source and commit sink protocols.
Used by the test-suite and the CLI ``--mock`` mode; sample data is loaded
from ``sample_data.json`` in the same format as the stored documents.
"""

import json
import logging
import threading
import uuid
from pathlib import Path
from typing import Callable, Dict, List, Optional

from pendulum import Date

from ..domain.closures import active_closures, validate_closure
from ..domain.dates import DEFAULT_TIMEZONE, to_local_date, today as local_today
from ..domain.exceptions import PersistenceError
from ..domain.models import AppointmentInterval, ClosurePeriod
from ..services.booking import CommitResult, ConflictCheck
from .documents import parse_appointments, parse_closures, sort_key

logger = logging.getLogger(__name__)

SAMPLE_DATA_FILE = Path(__file__).parent / "sample_data.json"


class InMemoryStore:
    """
    Thread-safe store whose transactions are serialized by a single lock.

    The conflict check and the write happen under the same lock, which gives
    the check-then-write atomicity a real database transaction provides.
    """

    def __init__(
        self,
        timezone: str = DEFAULT_TIMEZONE,
        today: Optional[Callable[[], Date]] = None,
    ):
        self.timezone = timezone
        self._today = today or (lambda: local_today(self.timezone))
        self._appointments: Dict[str, AppointmentInterval] = {}
        self._closures: Dict[str, ClosurePeriod] = {}
        self._lock = threading.RLock()

    @classmethod
    def load_from_json(
        cls,
        data_file: Optional[Path] = None,
        timezone: str = DEFAULT_TIMEZONE,
        today: Optional[Callable[[], Date]] = None,
    ) -> "InMemoryStore":
        """
        Load appointments and closures from a JSON file.

        Expected shape::

            {"appointments": [{"id": ..., "selectedDate": ..., ...}],
             "closures": [{"id": ..., "startDate": ..., "endDate": ...}]}

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If it is not valid JSON of that shape
            PersistenceError: If an appointment record cannot be read
        """
        path = data_file or SAMPLE_DATA_FILE
        if not path.exists():
            raise FileNotFoundError(f"Data file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Data file must contain an object at the root level.")

        store = cls(timezone=timezone, today=today)
        appointment_docs = [
            (str(doc.get("id") or uuid.uuid4().hex), doc) for doc in data.get("appointments", [])
        ]
        closure_docs = [
            (str(doc.get("id") or uuid.uuid4().hex), doc) for doc in data.get("closures", [])
        ]
        # Loaded records back every later conflict check, so none may be skipped
        for appointment in parse_appointments(appointment_docs, timezone, strict=True):
            store.add_appointment(appointment)
        for period in parse_closures(closure_docs, timezone):
            store._closures[period.id] = period

        logger.debug(
            "Loaded %d appointment(s) and %d closure(s) from %s",
            len(store._appointments), len(store._closures), path,
        )
        return store

    # Appointment source

    def fetch_appointments_for_date(self, date: Date) -> List[AppointmentInterval]:
        return self.fetch_appointments_in_range(date, date)

    def fetch_appointments_in_range(self, start: Date, end: Date) -> List[AppointmentInterval]:
        first = to_local_date(start, self.timezone)
        last = to_local_date(end, self.timezone)
        with self._lock:
            matching = [a for a in self._appointments.values() if first <= a.date <= last]
        return sorted(matching, key=sort_key)

    # Closure source

    def fetch_active_closures(self) -> List[ClosurePeriod]:
        with self._lock:
            periods = list(self._closures.values())
        return active_closures(periods, self._today())

    def fetch_all_closures(self) -> List[ClosurePeriod]:
        with self._lock:
            periods = list(self._closures.values())
        return sorted(periods, key=lambda p: (p.start_date, p.end_date))

    def create_closure(self, start: Date, end: Date, reason: str = "") -> ClosurePeriod:
        """
        Raises:
            InvalidClosure: If the period is invalid.
            ClosureOverlapError: If it overlaps an existing period.
        """
        first = to_local_date(start, self.timezone)
        last = to_local_date(end, self.timezone)
        with self._lock:
            validate_closure(first, last, reason, self._closures.values())
            period = ClosurePeriod(
                id=uuid.uuid4().hex,
                start_date=first,
                end_date=last,
                reason=reason.strip(),
            )
            self._closures[period.id] = period
        logger.info("Closure %s created: %s to %s", period.id, first, last)
        return period

    def delete_closure(self, closure_id: str) -> None:
        with self._lock:
            if self._closures.pop(closure_id, None) is None:
                raise PersistenceError(f"Closure period not found: {closure_id}")

    # Commit sink

    def create_appointment_transactional(
        self,
        candidate: AppointmentInterval,
        conflict_check: ConflictCheck,
    ) -> CommitResult:
        with self._lock:
            rejection = conflict_check(self.fetch_appointments_for_date(candidate.date))
            if rejection is not None:
                return rejection
            stored = candidate.with_id(candidate.id or uuid.uuid4().hex)
            if stored.id in self._appointments:
                raise PersistenceError(f"Appointment id already exists: {stored.id}")
            self._appointments[stored.id] = stored
            return stored

    def update_appointment_transactional(
        self,
        candidate: AppointmentInterval,
        conflict_check: ConflictCheck,
    ) -> CommitResult:
        with self._lock:
            if candidate.id not in self._appointments:
                raise PersistenceError(f"Appointment not found: {candidate.id}")
            rejection = conflict_check(self.fetch_appointments_for_date(candidate.date))
            if rejection is not None:
                return rejection
            self._appointments[candidate.id] = candidate
            return candidate

    def add_appointment(self, appointment: AppointmentInterval) -> AppointmentInterval:
        """Insert without any check; for seeding data."""
        stored = appointment if appointment.id else appointment.with_id(uuid.uuid4().hex)
        with self._lock:
            self._appointments[stored.id] = stored
        return stored

    def delete_appointment(self, appointment_id: str) -> None:
        with self._lock:
            if self._appointments.pop(appointment_id, None) is None:
                raise PersistenceError(f"Appointment not found: {appointment_id}")
