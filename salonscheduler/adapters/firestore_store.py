"""
Google Cloud Firestore storage adapter.

Appointments live in the ``customers`` collection and closures in
``vacations``, as written by the booking site. ``selectedDate`` was stored
over time both as a timestamp and as an ISO string, so a day's appointments
are read with one query per representation and normalized afterwards.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone as dt_timezone
from typing import Any, Callable, Dict, List, Optional

import pendulum
from google.cloud import exceptions as gexc
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from pendulum import Date

from ..domain.closures import active_closures, validate_closure
from ..domain.dates import DEFAULT_TIMEZONE, to_local_date, today as local_today
from ..domain.exceptions import PersistenceError
from ..domain.models import AppointmentInterval, ClosurePeriod
from ..services.booking import CommitResult, ConflictCheck
from .documents import (
    appointment_to_document,
    closure_to_document,
    parse_appointments,
    parse_closures,
    sort_key,
)

logger = logging.getLogger(__name__)

DATE_FIELD = "selectedDate"
# Upper bound for prefix matches on string fields
STRING_RANGE_END = "\uf8ff"


class FirestoreStore:
    """
    Firestore implementation of the appointment source, closure source and
    commit sink protocols.

    Commits run inside ``@firestore.transactional`` functions: the day's
    appointments are read through the transaction, the conflict check runs,
    and the write happens only if it passes. Firestore retries the function
    on contention.
    """

    def __init__(
        self,
        client: "firestore.Client",
        timezone: str = DEFAULT_TIMEZONE,
        appointments_collection: str = "customers",
        closures_collection: str = "vacations",
        today: Optional[Callable[[], Date]] = None,
    ):
        self._client = client
        self.timezone = timezone
        self._appointments = client.collection(appointments_collection)
        self._closures = client.collection(closures_collection)
        self._today = today or (lambda: local_today(self.timezone))

    @classmethod
    def from_project(cls, project: Optional[str] = None, **kwargs: Any) -> "FirestoreStore":
        """Build a client with Application Default Credentials."""
        return cls(firestore.Client(project=project), **kwargs)

    # Appointment source

    def fetch_appointments_for_date(self, date: Date) -> List[AppointmentInterval]:
        return self.fetch_appointments_in_range(date, date)

    def fetch_appointments_in_range(
        self,
        start: Date,
        end: Date,
        transaction: Optional["firestore.Transaction"] = None,
    ) -> List[AppointmentInterval]:
        first = to_local_date(start, self.timezone)
        last = to_local_date(end, self.timezone)

        documents: Dict[str, Dict[str, Any]] = {}
        try:
            for query in self._range_queries(first, last):
                for snapshot in query.stream(transaction=transaction):
                    documents[snapshot.id] = snapshot.to_dict() or {}
        except gexc.GoogleCloudError as err:
            raise PersistenceError(f"Firestore error: {err}") from err

        # Reads inside a commit transaction feed the conflict check and fail closed
        appointments = parse_appointments(
            documents.items(), self.timezone, strict=transaction is not None
        )
        return sorted(
            (a for a in appointments if first <= a.date <= last),
            key=sort_key,
        )

    def _range_queries(self, first: Date, last: Date) -> list:
        """
        One query for timestamp-typed dates and one for string-typed dates.

        Firestore never compares values of different types, so each
        representation needs its own range. ISO strings are UTC instants and
        may fall on the neighbouring local day, hence the one-day margin.
        """
        start_ts = self._local_midnight(first)
        end_ts = self._local_midnight(last.add(days=1))
        timestamp_query = (
            self._appointments
            .where(filter=FieldFilter(DATE_FIELD, ">=", start_ts))
            .where(filter=FieldFilter(DATE_FIELD, "<", end_ts))
        )
        string_query = (
            self._appointments
            .where(filter=FieldFilter(DATE_FIELD, ">=", first.subtract(days=1).isoformat()))
            .where(filter=FieldFilter(DATE_FIELD, "<=", last.add(days=1).isoformat() + STRING_RANGE_END))
        )
        return [timestamp_query, string_query]

    def _local_midnight(self, day: Date) -> datetime:
        local = pendulum.datetime(day.year, day.month, day.day, tz=self.timezone)
        return datetime.fromtimestamp(local.timestamp(), tz=dt_timezone.utc)

    # Closure source

    def fetch_active_closures(self) -> List[ClosurePeriod]:
        return active_closures(self.fetch_all_closures(), self._today())

    def fetch_all_closures(self) -> List[ClosurePeriod]:
        try:
            documents = [(s.id, s.to_dict() or {}) for s in self._closures.stream()]
        except gexc.GoogleCloudError as err:
            raise PersistenceError(f"Firestore error: {err}") from err
        periods = parse_closures(documents, self.timezone)
        return sorted(periods, key=lambda p: (p.start_date, p.end_date))

    def create_closure(self, start: Date, end: Date, reason: str = "") -> ClosurePeriod:
        """
        Raises:
            InvalidClosure: If the period is invalid.
            ClosureOverlapError: If it overlaps an existing period.
        """
        first = to_local_date(start, self.timezone)
        last = to_local_date(end, self.timezone)
        validate_closure(first, last, reason, self.fetch_all_closures())

        ref = self._closures.document()
        period = ClosurePeriod(id=ref.id, start_date=first, end_date=last, reason=reason.strip())
        try:
            ref.set(closure_to_document(period))
        except gexc.GoogleCloudError as err:
            raise PersistenceError(f"Firestore error: {err}") from err
        logger.info("Closure %s created: %s to %s", period.id, first, last)
        return period

    def delete_closure(self, closure_id: str) -> None:
        try:
            self._closures.document(closure_id).delete()
        except gexc.GoogleCloudError as err:
            raise PersistenceError(f"Firestore error: {err}") from err

    # Commit sink

    def create_appointment_transactional(
        self,
        candidate: AppointmentInterval,
        conflict_check: ConflictCheck,
    ) -> CommitResult:
        ref = self._appointments.document(candidate.id) if candidate.id else self._appointments.document()
        return self._run_commit(ref, candidate, conflict_check, must_exist=False)

    def update_appointment_transactional(
        self,
        candidate: AppointmentInterval,
        conflict_check: ConflictCheck,
    ) -> CommitResult:
        if not candidate.id:
            raise PersistenceError("Cannot update an appointment without an id")
        ref = self._appointments.document(candidate.id)
        return self._run_commit(ref, candidate, conflict_check, must_exist=True)

    def delete_appointment(self, appointment_id: str) -> None:
        try:
            self._appointments.document(appointment_id).delete()
        except gexc.GoogleCloudError as err:
            raise PersistenceError(f"Firestore error: {err}") from err

    def _run_commit(self, ref, candidate, conflict_check, must_exist: bool) -> CommitResult:
        try:
            return _commit_in_transaction(
                self._client.transaction(), self, ref, candidate, conflict_check, must_exist
            )
        except gexc.GoogleCloudError as err:
            raise PersistenceError(f"Firestore error: {err}") from err

    def _document_for(self, appointment: AppointmentInterval) -> Dict[str, Any]:
        return appointment_to_document(
            appointment, selected_date=self._local_midnight(appointment.date)
        )


@firestore.transactional
def _commit_in_transaction(
    transaction: "firestore.Transaction",
    store: FirestoreStore,
    ref: "firestore.DocumentReference",
    candidate: AppointmentInterval,
    conflict_check: ConflictCheck,
    must_exist: bool,
) -> CommitResult:
    # Firestore requires every read to happen before the first write
    if must_exist and not ref.get(transaction=transaction).exists:
        raise PersistenceError(f"Appointment not found: {ref.id}")

    existing = store.fetch_appointments_in_range(candidate.date, candidate.date, transaction=transaction)
    rejection = conflict_check(existing)
    if rejection is not None:
        return rejection

    stored = candidate.with_id(ref.id)
    transaction.set(ref, store._document_for(stored))
    return stored
