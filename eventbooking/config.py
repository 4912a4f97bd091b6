"""
Configuration management using Pydantic models loaded from YAML.
"""

import logging
from datetime import time
from pathlib import Path
from typing import List

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from rich.logging import RichHandler

from .domain.schedule_validator import ScheduleDefaults
from .domain.timeutils import CANONICAL_TIMEZONE, parse_time_of_day, validate_timezone

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class DefaultsConfig(BaseModel):
    """Defaults for slot listings and for days missing from a schedule."""
    duration_minutes: int = 30
    day_start: str = "09:00"
    day_end: str = "17:00"
    working_days: List[int] = Field(default_factory=lambda: [0, 1, 2, 3, 4])  # Monday to Friday

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure slot duration is positive."""
        if value <= 0:
            raise ValueError("duration_minutes must be greater than zero")
        return value

    @field_validator("day_start", "day_end")
    @classmethod
    def validate_time(cls, value: str) -> str:
        """Validate HH:MM notation."""
        if parse_time_of_day(value) is None:
            raise ValueError(f"Expected a time of day like 09:00, got {value!r}")
        return value

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, value: List[int]) -> List[int]:
        """Ensure weekdays are in valid range and deduplicated."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"working_days must be between 0 and 6, got {invalid_days}")
        # Preserve order while removing duplicates
        seen: set[int] = set()
        deduped: List[int] = []
        for day in value:
            if day not in seen:
                deduped.append(day)
                seen.add(day)
        return deduped

    @model_validator(mode="after")
    def validate_hours_order(self) -> "DefaultsConfig":
        """Ensure the default window opens before it closes."""
        if self.get_start_time() >= self.get_end_time():
            raise ValueError("day_end must be later than day_start")
        return self

    def get_start_time(self) -> time:
        return parse_time_of_day(self.day_start)

    def get_end_time(self) -> time:
        return parse_time_of_day(self.day_end)

    def schedule_defaults(self) -> ScheduleDefaults:
        return ScheduleDefaults(
            start_time=self.get_start_time(),
            end_time=self.get_end_time(),
            working_days=frozenset(self.working_days),
        )


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = CANONICAL_TIMEZONE
    log_level: str = "INFO"
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, value: str) -> str:
        """Reject unknown IANA zone names."""
        return validate_timezone(value)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}, got {value!r}")
        return level

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

        return cls(**data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        config_path = Path(__file__).parent.parent / "config.yaml"

    return config_path


def configure_logging(level: str = "INFO") -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
