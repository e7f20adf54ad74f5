"""
Tests for the in-memory store and the bundled sample data.
"""

import json

import pendulum
import pytest

from salonscheduler.adapters.memory_store import InMemoryStore
from salonscheduler.domain.exceptions import ClosureOverlapError, PersistenceError
from salonscheduler.domain.models import AppointmentInterval

TODAY = pendulum.date(2026, 10, 19)
MONDAY = pendulum.date(2026, 11, 2)


def _allow_all(existing):
    return None


class TestSampleData:
    """Tests for load_from_json with the bundled file."""

    def test_mixed_date_representations_are_normalized(self):
        store = InMemoryStore.load_from_json(today=lambda: TODAY)

        monday = store.fetch_appointments_for_date(MONDAY)
        assert [a.id for a in monday] == ["apt-001", "apt-002"]

        tuesday = store.fetch_appointments_for_date(MONDAY.add(days=1))
        assert [(a.id, str(a.end_time)) for a in tuesday] == [("apt-003", "11:30")]

    def test_closures(self):
        store = InMemoryStore.load_from_json(today=lambda: TODAY)
        periods = store.fetch_active_closures()
        assert [p.id for p in periods] == ["closure-christmas", "closure-august"]
        assert periods[1].start_date == pendulum.date(2027, 8, 1)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            InMemoryStore.load_from_json(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError):
            InMemoryStore.load_from_json(path)

    def test_unreadable_appointment_fails_the_load(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps({
            "appointments": [{"id": "legacy", "selectedDate": "2026-11-02", "startTime": "10:00", "duration": "60 min"}],
        }), encoding="utf-8")
        with pytest.raises(PersistenceError, match="legacy"):
            InMemoryStore.load_from_json(path)

    def test_custom_file(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps({
            "appointments": [{"selectedDate": "2026-11-02", "startTime": "14:00", "duration": 30}],
        }), encoding="utf-8")
        store = InMemoryStore.load_from_json(path)
        assert len(store.fetch_appointments_for_date(MONDAY)) == 1
        assert store.fetch_all_closures() == []


class TestStoreOperations:
    """Tests for store reads and writes."""

    def test_range_read_is_inclusive_and_sorted(self):
        store = InMemoryStore(today=lambda: TODAY)
        for id, day, start in [("b", 3, "09:00"), ("a", 2, "11:00"), ("c", 2, "09:00"), ("d", 5, "09:00")]:
            store.add_appointment(AppointmentInterval.create(
                id=id, date=pendulum.date(2026, 11, day), start_time=start, duration_minutes=30
            ))

        found = store.fetch_appointments_in_range(MONDAY, "2026-11-03")
        assert [a.id for a in found] == ["c", "a", "b"]

    def test_active_closures_hide_ended_periods(self):
        store = InMemoryStore(today=lambda: TODAY)
        store.create_closure(pendulum.date(2026, 8, 1), pendulum.date(2026, 8, 20))
        store.create_closure(pendulum.date(2026, 12, 24), pendulum.date(2027, 1, 6))
        assert len(store.fetch_all_closures()) == 2
        assert len(store.fetch_active_closures()) == 1

    def test_create_closure_rejects_overlap(self):
        store = InMemoryStore(today=lambda: TODAY)
        store.create_closure("2026-12-24", "2027-01-06", "Feste")
        with pytest.raises(ClosureOverlapError):
            store.create_closure("2027-01-06", "2027-01-10")

    def test_delete_closure(self):
        store = InMemoryStore(today=lambda: TODAY)
        period = store.create_closure("2026-12-24", "2027-01-06")
        store.delete_closure(period.id)
        assert store.fetch_all_closures() == []
        with pytest.raises(PersistenceError):
            store.delete_closure(period.id)

    def test_transactional_create_assigns_id(self):
        store = InMemoryStore(today=lambda: TODAY)
        candidate = AppointmentInterval.create(id=None, date=MONDAY, start_time="10:00", duration_minutes=30)
        stored = store.create_appointment_transactional(candidate, _allow_all)
        assert stored.id
        assert store.fetch_appointments_for_date(MONDAY) == [stored]

    def test_transactional_create_returns_rejection(self):
        store = InMemoryStore(today=lambda: TODAY)
        rejection = PersistenceError("nope")
        candidate = AppointmentInterval.create(id=None, date=MONDAY, start_time="10:00", duration_minutes=30)
        assert store.create_appointment_transactional(candidate, lambda existing: rejection) is rejection
        assert store.fetch_appointments_for_date(MONDAY) == []

    def test_check_sees_same_day_appointments(self):
        store = InMemoryStore(today=lambda: TODAY)
        seeded = store.add_appointment(
            AppointmentInterval.create(id="a1", date=MONDAY, start_time="09:00", duration_minutes=30)
        )
        seen = []

        def check(existing):
            seen.extend(existing)
            return None

        candidate = AppointmentInterval.create(id=None, date=MONDAY, start_time="10:00", duration_minutes=30)
        store.create_appointment_transactional(candidate, check)
        assert seen == [seeded]

    def test_duplicate_id_is_refused(self):
        store = InMemoryStore(today=lambda: TODAY)
        candidate = AppointmentInterval.create(id="a1", date=MONDAY, start_time="10:00", duration_minutes=30)
        store.add_appointment(candidate)
        with pytest.raises(PersistenceError):
            store.create_appointment_transactional(candidate, _allow_all)

    def test_delete_appointment(self):
        store = InMemoryStore(today=lambda: TODAY)
        store.add_appointment(
            AppointmentInterval.create(id="a1", date=MONDAY, start_time="10:00", duration_minutes=30)
        )
        store.delete_appointment("a1")
        assert store.fetch_appointments_for_date(MONDAY) == []
