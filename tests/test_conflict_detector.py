"""
Tests for conflict detection.
"""

import pendulum
import pytest

from salonscheduler.domain.conflict_detector import find_conflicts, has_conflict
from salonscheduler.domain.models import AppointmentInterval

WEDNESDAY = pendulum.date(2026, 11, 4)


def _appointment(id, start, duration):
    return AppointmentInterval.create(id=id, date=WEDNESDAY, start_time=start, duration_minutes=duration)


BOOKED = _appointment("a1", "10:00", 60)


class TestFindConflicts:
    """Tests for find_conflicts."""

    def test_back_to_back_is_allowed(self):
        assert not has_conflict("09:00", 60, [BOOKED])
        assert not has_conflict("11:00", 30, [BOOKED])

    def test_overlap_is_reported(self):
        assert find_conflicts("10:30", 60, [BOOKED]) == [BOOKED]
        assert find_conflicts("09:30", 45, [BOOKED]) == [BOOKED]

    def test_multiple_conflicts(self):
        other = _appointment("a2", "11:00", 30)
        assert find_conflicts("10:45", 30, [BOOKED, other]) == [BOOKED, other]

    def test_buffer_widens_existing_appointment(self):
        """With a 10 minute buffer, 10:00-11:00 blocks 09:50-11:10."""
        assert has_conflict("09:00", 60, [BOOKED], buffer_minutes=10)
        assert has_conflict("11:05", 30, [BOOKED], buffer_minutes=10)
        assert not has_conflict("11:10", 30, [BOOKED], buffer_minutes=10)
        assert not has_conflict("08:50", 60, [BOOKED], buffer_minutes=10)

    def test_exclude_id_skips_edited_appointment(self):
        assert not has_conflict("10:00", 60, [BOOKED], exclude_id="a1")
        assert has_conflict("10:00", 60, [BOOKED], exclude_id="other")

    def test_buffer_near_midnight_does_not_wrap(self):
        early = _appointment("e", "00:00", 15)
        assert not has_conflict("23:30", 15, [early], buffer_minutes=30)

    def test_negative_buffer_is_rejected(self):
        with pytest.raises(ValueError):
            find_conflicts("09:00", 30, [BOOKED], buffer_minutes=-5)

    def test_empty_schedule(self):
        assert find_conflicts("09:00", 30, []) == []
