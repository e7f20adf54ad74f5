"""
Tests for YAML configuration.
"""

from pathlib import Path

import pendulum
import pytest
from pydantic import ValidationError

from salonscheduler.config import AppConfig

EXAMPLE_CONFIG = Path(__file__).parent.parent / "config.example.yaml"


class TestAppConfig:
    """Tests for AppConfig."""

    def test_defaults_match_standard_hours(self):
        summary = AppConfig().build_calendar().summary()
        assert summary["Monday"] == "09:00 - 19:00"
        assert summary["Friday"] == "09:00 - 18:30"
        assert summary["Saturday"] == "Closed"

    def test_example_file_loads(self):
        config = AppConfig.load_from_yaml(EXAMPLE_CONFIG)
        assert config.timezone == "Europe/Rome"
        assert config.find_service("manicure").durations == [30, 60]
        assert config.service_catalog()["Massaggi"] == [30, 50, 90]
        assert config.firestore.closures_collection == "vacations"

    def test_weekday_names_are_case_insensitive(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("business_hours:\n  Saturday: {open: '09:00', close: '13:00'}\n", encoding="utf-8")
        calendar = AppConfig.load_from_yaml(path).build_calendar()
        assert str(calendar.hours_for(5)) == "09:00 - 13:00"
        assert calendar.hours_for(0) is None

    def test_relative_data_file_resolves_against_config_dir(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("data_file: data.json\n", encoding="utf-8")
        assert AppConfig.load_from_yaml(path).data_file == (tmp_path / "data.json").resolve()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AppConfig.load_from_yaml(tmp_path / "config.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("business_hours: [unclosed\n", encoding="utf-8")
        with pytest.raises(ValueError):
            AppConfig.load_from_yaml(path)

    @pytest.mark.parametrize(
        "data",
        [
            {"timezone": "Mars/Olympus"},
            {"slot_interval_minutes": 0},
            {"buffer_minutes": -5},
            {"business_hours": {"funday": {"open": "09:00", "close": "10:00"}}},
            {"business_hours": {"monday": {"open": "19:00", "close": "09:00"}}},
            {"business_hours": {"monday": {"open": "9", "close": "10:00"}}},
            {"services": [{"name": "Manicure"}, {"name": "manicure"}]},
            {"services": [{"name": "Manicure", "durations": [600]}]},
            {"min_duration_minutes": 60, "max_duration_minutes": 30},
        ],
    )
    def test_invalid_values(self, data):
        with pytest.raises(ValidationError):
            AppConfig(**data)

    def test_inactive_services_leave_the_catalog(self):
        config = AppConfig(services=[
            {"name": "Manicure", "durations": [30]},
            {"name": "Ceretta", "durations": [15], "active": False},
        ])
        assert config.service_catalog() == {"Manicure": [30]}
        assert AppConfig().service_catalog() is None

    def test_build_engine(self):
        today = pendulum.date(2026, 10, 19)
        config = AppConfig(slot_interval_minutes=30, services=[{"name": "Manicure", "durations": [30, 60]}])
        engine = config.build_engine(today=lambda: today)

        result = engine.get_available_slots("2026-11-02", "Manicure", 60, [], [])
        assert result.as_strings()[:3] == ["09:00", "09:30", "10:00"]
