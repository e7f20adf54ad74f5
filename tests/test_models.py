"""
Tests for domain models.
"""

import pendulum
import pytest

from salonscheduler.domain.exceptions import InvalidDuration
from salonscheduler.domain.models import AppointmentInterval, AvailabilityResult, ClockTime, ClosurePeriod

MONDAY = pendulum.date(2026, 11, 2)


class TestAppointmentInterval:
    """Tests for AppointmentInterval."""

    def test_create_computes_end_time(self):
        appt = AppointmentInterval.create(id="a1", date=MONDAY, start_time="09:15", duration_minutes=50)
        assert appt.end_time == ClockTime(10, 5)
        assert str(appt) == "2026-11-02 09:15-10:05"

    def test_create_rejects_ending_at_midnight(self):
        with pytest.raises(InvalidDuration):
            AppointmentInterval.create(id="a1", date=MONDAY, start_time="23:00", duration_minutes=60)

    def test_direct_construction_rejects_ending_at_midnight(self):
        """Both construction paths report the same error for a 24:00 end."""
        with pytest.raises(InvalidDuration, match="midnight"):
            AppointmentInterval(
                id="a1",
                date=MONDAY,
                start_time=ClockTime(23, 0),
                end_time=ClockTime(0, 0),
                duration_minutes=60,
            )

    def test_direct_construction_rejects_past_midnight(self):
        with pytest.raises(InvalidDuration):
            AppointmentInterval(
                id="a1",
                date=MONDAY,
                start_time=ClockTime(23, 30),
                end_time=ClockTime(0, 30),
                duration_minutes=60,
            )

    def test_mismatched_end_time(self):
        with pytest.raises(ValueError):
            AppointmentInterval(
                id="a1",
                date=MONDAY,
                start_time=ClockTime(9, 0),
                end_time=ClockTime(9, 30),
                duration_minutes=60,
            )

    def test_non_positive_duration(self):
        with pytest.raises(InvalidDuration):
            AppointmentInterval.create(id="a1", date=MONDAY, start_time="09:00", duration_minutes=0)

    def test_with_id_keeps_fields(self):
        appt = AppointmentInterval.create(id=None, date=MONDAY, start_time="09:00", duration_minutes=30)
        stored = appt.with_id("x")
        assert stored.id == "x"
        assert stored.end_time == appt.end_time


class TestValueObjects:
    """Tests for closure periods and availability results."""

    def test_closure_length(self):
        period = ClosurePeriod(id="c", start_date=MONDAY, end_date=MONDAY.add(days=2))
        assert period.length_days() == 3
        assert period.overlaps(MONDAY.add(days=2), MONDAY.add(days=5))

    def test_availability_result_contains_strings(self):
        result = AvailabilityResult(date=MONDAY, slots=(ClockTime(9), ClockTime(9, 15)))
        assert "09:15" in result
        assert ClockTime(9) in result
        assert "10:00" not in result
        assert result.as_strings() == ["09:00", "09:15"]
