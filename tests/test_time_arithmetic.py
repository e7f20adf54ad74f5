"""
Tests for clock-time arithmetic.
"""

from datetime import time

import pytest

from salonscheduler.domain.exceptions import InvalidTimeFormat
from salonscheduler.domain.models import ClockTime
from salonscheduler.domain.time_arithmetic import (
    add_minutes,
    duration_minutes,
    end_wraps_midnight,
    format_12h,
    format_duration,
    is_valid_time,
    minutes_to_time,
    next_slot_boundary,
    parse_time,
    previous_slot_boundary,
    ranges_overlap,
    round_to_interval,
    time_to_minutes,
)


class TestClockTime:
    """Tests for ClockTime parsing and formatting."""

    def test_parse_and_format(self):
        """Times are zero-padded when formatted."""
        assert str(ClockTime.parse("9:05")) == "09:05"
        assert ClockTime.parse("23:59") == ClockTime(23, 59)

    @pytest.mark.parametrize("value", ["24:00", "12:60", "1230", "", "ab:cd", "12:5"])
    def test_parse_rejects_malformed(self, value):
        with pytest.raises(InvalidTimeFormat):
            ClockTime.parse(value)

    def test_constructor_validates_range(self):
        with pytest.raises(InvalidTimeFormat):
            ClockTime(25, 0)
        with pytest.raises(InvalidTimeFormat):
            ClockTime(True, 0)

    def test_coerce_accepts_datetime_time(self):
        assert ClockTime.coerce(time(14, 30)) == ClockTime(14, 30)
        assert ClockTime(14, 30).to_time() == time(14, 30)

    def test_ordering(self):
        assert ClockTime(9, 0) < ClockTime(9, 15) < ClockTime(10, 0)


class TestConversions:
    """Tests for minute conversions."""

    def test_time_to_minutes(self):
        assert time_to_minutes("00:00") == 0
        assert time_to_minutes("09:30") == 570
        assert time_to_minutes("23:59") == 1439

    def test_minutes_to_time_wraps(self):
        """Values past a day wrap modulo 24 hours."""
        assert str(minutes_to_time(570)) == "09:30"
        assert str(minutes_to_time(1440)) == "00:00"
        assert str(minutes_to_time(1500)) == "01:00"
        assert str(minutes_to_time(-30)) == "23:30"

    def test_round_trip_on_every_quarter_hour(self):
        for minutes in range(0, 1440, 15):
            assert time_to_minutes(minutes_to_time(minutes)) == minutes

    def test_add_minutes(self):
        assert str(add_minutes("09:45", 30)) == "10:15"
        assert str(add_minutes("23:30", 45)) == "00:15"

    def test_end_wraps_midnight(self):
        assert not end_wraps_midnight("22:00", 119)
        assert end_wraps_midnight("22:00", 120)
        assert end_wraps_midnight("23:30", 60)


class TestRangesOverlap:
    """Tests for the half-open overlap test."""

    def test_back_to_back_ranges_do_not_overlap(self):
        assert not ranges_overlap("09:00", "10:00", "10:00", "11:00")
        assert not ranges_overlap("10:00", "11:00", "09:00", "10:00")

    def test_partial_overlap(self):
        assert ranges_overlap("09:00", "10:01", "10:00", "11:00")
        assert ranges_overlap("10:30", "11:30", "10:00", "11:00")

    def test_containment(self):
        assert ranges_overlap("09:00", "12:00", "10:00", "11:00")
        assert ranges_overlap("10:15", "10:45", "10:00", "11:00")

    def test_is_symmetric(self):
        pairs = [(540, 600, 590, 700), (540, 600, 600, 660), (0, 30, 1000, 1100)]
        for a_start, a_end, b_start, b_end in pairs:
            assert ranges_overlap(a_start, a_end, b_start, b_end) == ranges_overlap(
                b_start, b_end, a_start, a_end
            )

    def test_raw_minutes_may_leave_the_day(self):
        """Buffered footprints are compared without wrapping."""
        assert ranges_overlap(0, 30, -10, 10)
        assert ranges_overlap(1430, 1439, 1420, 1450)


class TestDurationAndRounding:
    """Tests for display helpers."""

    def test_duration_minutes(self):
        assert duration_minutes("09:00", "10:30") == 90
        assert duration_minutes("23:00", "01:00") == 120

    def test_round_to_interval(self):
        assert str(round_to_interval("09:07")) == "09:00"
        assert str(round_to_interval("09:08")) == "09:15"
        assert str(round_to_interval("09:52", 30)) == "10:00"

    def test_slot_boundaries(self):
        assert str(next_slot_boundary("09:01")) == "09:15"
        assert str(next_slot_boundary("09:15")) == "09:15"
        assert str(previous_slot_boundary("09:14")) == "09:00"


class TestParsingAndFormatting:
    """Tests for 12/24-hour input and output."""

    def test_is_valid_time(self):
        assert is_valid_time("18:30")
        assert not is_valid_time("18:3")
        assert not is_valid_time(None)

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("2:30 pm", "14:30"),
            ("2:30PM", "14:30"),
            ("12am", "00:00"),
            ("12 p.m.", "12:00"),
            ("9am", "09:00"),
            ("14:30", "14:30"),
        ],
    )
    def test_parse_time(self, value, expected):
        assert str(parse_time(value)) == expected

    def test_parse_time_rejects_invalid_hour(self):
        with pytest.raises(InvalidTimeFormat):
            parse_time("13pm")

    def test_format_12h(self):
        assert format_12h("14:30") == "2:30 PM"
        assert format_12h("00:05") == "12:05 AM"
        assert format_12h("12:00") == "12:00 PM"

    def test_format_duration(self):
        assert format_duration(45) == "45 min"
        assert format_duration(120) == "2h"
        assert format_duration(90) == "1h 30min"
