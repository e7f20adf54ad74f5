"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Dict, List, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.availability import AvailabilityEngine
from .domain.business_calendar import DEFAULT_HOURS, WEEKDAY_NAMES, BusinessCalendar
from .domain.exceptions import InvalidTimeFormat
from .domain.models import BusinessHours, ClockTime

WEEKDAY_KEYS = [name.lower() for name in WEEKDAY_NAMES]


class OpeningWindow(BaseModel):
    """Opening and closing time for one weekday."""
    open: str
    close: str

    @field_validator("open", "close")
    @classmethod
    def validate_clock(cls, value: str) -> str:
        """Ensure HH:MM format."""
        try:
            return str(ClockTime.parse(value))
        except InvalidTimeFormat as exc:
            raise ValueError(str(exc)) from exc

    @model_validator(mode="after")
    def validate_order(self) -> "OpeningWindow":
        """Ensure the window opens before it closes."""
        if ClockTime.parse(self.close) <= ClockTime.parse(self.open):
            raise ValueError(f"close ({self.close}) must be later than open ({self.open})")
        return self


def _default_business_hours() -> Dict[str, Optional[OpeningWindow]]:
    hours: Dict[str, Optional[OpeningWindow]] = {key: None for key in WEEKDAY_KEYS}
    for day, (open_time, close_time) in DEFAULT_HOURS.items():
        hours[WEEKDAY_KEYS[day]] = OpeningWindow(open=open_time, close=close_time)
    return hours


class ServiceType(BaseModel):
    """A bookable service and the durations it is offered in."""
    name: str
    durations: List[int] = Field(default_factory=list)
    active: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Service name is required")
        if len(value) > 100:
            raise ValueError("Service name is too long")
        return value

    @field_validator("durations")
    @classmethod
    def validate_durations(cls, value: List[int]) -> List[int]:
        """Ensure durations are positive and deduplicated."""
        invalid = [d for d in value if d <= 0]
        if invalid:
            raise ValueError(f"durations must be positive, got {invalid}")
        return sorted(set(value))


class FirestoreConfig(BaseModel):
    """Firestore connection settings."""
    project: Optional[str] = None
    appointments_collection: str = "customers"
    closures_collection: str = "vacations"


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/Rome"
    slot_interval_minutes: int = 15
    buffer_minutes: int = 0
    min_duration_minutes: int = 15
    max_duration_minutes: int = 480
    business_hours: Dict[str, Optional[OpeningWindow]] = Field(default_factory=_default_business_hours)
    services: List[ServiceType] = Field(default_factory=list)
    firestore: FirestoreConfig = Field(default_factory=FirestoreConfig)
    data_file: Optional[Path] = None

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            pendulum.timezone(value)
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("slot_interval_minutes")
    @classmethod
    def validate_interval(cls, value: int) -> int:
        if not 5 <= value <= 60:
            raise ValueError(f"slot_interval_minutes must be between 5 and 60, got {value}")
        return value

    @field_validator("buffer_minutes")
    @classmethod
    def validate_buffer(cls, value: int) -> int:
        if value < 0:
            raise ValueError("buffer_minutes must not be negative")
        return value

    @field_validator("business_hours")
    @classmethod
    def validate_business_hours(
        cls, value: Dict[str, Optional[OpeningWindow]]
    ) -> Dict[str, Optional[OpeningWindow]]:
        """Accept weekday names in any case; unlisted days are closed."""
        normalized: Dict[str, Optional[OpeningWindow]] = {key: None for key in WEEKDAY_KEYS}
        unknown = []
        for day, window in value.items():
            key = day.strip().lower()
            if key not in normalized:
                unknown.append(day)
                continue
            normalized[key] = window
        if unknown:
            raise ValueError(f"Unknown weekday name(s) in business_hours: {unknown}")
        return normalized

    @field_validator("services")
    @classmethod
    def validate_services(cls, value: List[ServiceType]) -> List[ServiceType]:
        """Ensure service names are unique."""
        seen: set[str] = set()
        for service in value:
            key = service.name.lower()
            if key in seen:
                raise ValueError(f"Duplicate service name detected: {service.name}")
            seen.add(key)
        return value

    @model_validator(mode="after")
    def validate_duration_bounds(self) -> "AppConfig":
        if not 0 < self.min_duration_minutes <= self.max_duration_minutes:
            raise ValueError("min_duration_minutes must be positive and not above max_duration_minutes")
        for service in self.services:
            outside = [
                d for d in service.durations
                if not self.min_duration_minutes <= d <= self.max_duration_minutes
            ]
            if outside:
                raise ValueError(f"Service {service.name} has durations outside the bounds: {outside}")
        return self

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)
        if config.data_file is not None and not config.data_file.is_absolute():
            config.data_file = (config_path.parent / config.data_file).resolve()
        return config

    def build_calendar(self) -> BusinessCalendar:
        hours = {}
        for day, key in enumerate(WEEKDAY_KEYS):
            window = self.business_hours.get(key)
            if window is None:
                continue
            hours[day] = BusinessHours(
                day_of_week=day,
                open=ClockTime.parse(window.open),
                close=ClockTime.parse(window.close),
            )
        return BusinessCalendar(hours)

    def service_catalog(self) -> Optional[Dict[str, List[int]]]:
        """Active services by name, or None when no catalogue is configured."""
        if not self.services:
            return None
        return {s.name: list(s.durations) for s in self.services if s.active}

    def find_service(self, name: str) -> ServiceType | None:
        """Find a service by name, ignoring case."""
        for service in self.services:
            if service.name.lower() == name.lower():
                return service
        return None

    def build_engine(self, today=None) -> AvailabilityEngine:
        return AvailabilityEngine(
            calendar=self.build_calendar(),
            timezone=self.timezone,
            interval_minutes=self.slot_interval_minutes,
            min_duration_minutes=self.min_duration_minutes,
            max_duration_minutes=self.max_duration_minutes,
            catalog=self.service_catalog(),
            today=today,
        )


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
