"""
Configuration management using Pydantic models loaded from YAML.
"""

import os
from pathlib import Path
from typing import List, Literal, Tuple

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

DATABASE_PATH_ENV = "TIMESLOTS_DATABASE_PATH"


class GridConfig(BaseModel):
    """Opening hours and slot layout of the weekly grid."""
    open_hour: float = 6.0  # Club opens at 6 a.m.
    close_hour: float = 23.0  # Club closes at 11 p.m.
    slot_length_hours: float = 0.5
    week_index: int = 0

    @field_validator("open_hour", "close_hour")
    @classmethod
    def validate_hour(cls, v: float) -> float:
        """Validate hour is between 0 and 24."""
        if not 0 <= v <= 24:
            raise ValueError(f"Hour must be between 0 and 24, got {v}")
        return v

    @field_validator("slot_length_hours")
    @classmethod
    def validate_slot_length(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("slot_length_hours must be greater than zero")
        return value

    @model_validator(mode="after")
    def validate_window(self) -> "GridConfig":
        """Ensure the window opens before it closes and splits into whole slots."""
        if self.close_hour <= self.open_hour:
            raise ValueError("close_hour must be later than open_hour")
        slots = (self.close_hour - self.open_hour) / self.slot_length_hours
        if abs(slots - round(slots)) > 1e-9:
            raise ValueError(
                f"Opening window of {self.close_hour - self.open_hour} hours "
                f"does not split into slots of {self.slot_length_hours} hours"
            )
        return self


class PeakConfig(BaseModel):
    """Peak hours, during which the machine may only be charged."""
    days: List[int] = Field(default_factory=lambda: [1, 2, 3, 4])  # Monday - Thursday
    windows: List[Tuple[float, float]] = Field(
        default_factory=lambda: [(9.0, 11.0), (19.0, 21.0)]
    )

    @field_validator("days")
    @classmethod
    def validate_days(cls, value: List[int]) -> List[int]:
        """Ensure days are in valid range (0=Sunday .. 6=Saturday)."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"Peak days must be between 0 and 6, got {invalid_days}")
        return sorted(set(value))

    @field_validator("windows")
    @classmethod
    def validate_windows(cls, value: List[Tuple[float, float]]) -> List[Tuple[float, float]]:
        for start, end in value:
            if end <= start:
                raise ValueError(f"Peak window must end after it starts, got [{start}, {end})")
        return value


class StoreConfig(BaseModel):
    """Where slot state is kept."""
    backend: Literal["sqlite", "memory"] = "sqlite"
    path: Path = Path("slotsheet.db")
    timeout_seconds: float = 5.0
    seed_file: Path | None = None  # Bookings to apply on startup (memory backend)

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout_seconds must be greater than zero")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    grid: GridConfig = Field(default_factory=GridConfig)
    peak: PeakConfig = Field(default_factory=PeakConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    timezone: str = "America/New_York"
    max_member_name_length: int = 50
    log_level: str = "INFO"

    @field_validator("max_member_name_length")
    @classmethod
    def validate_name_length(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("max_member_name_length must be greater than zero")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
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

        return cls(**data).with_env_overrides()

    def with_env_overrides(self) -> "AppConfig":
        """Apply the database path from the environment, if set."""
        db_path = os.environ.get(DATABASE_PATH_ENV)
        if not db_path:
            return self
        store = self.store.model_copy(update={"path": Path(db_path)})
        return self.model_copy(update={"store": store})


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


def load_config(config_path: Path | None = None) -> AppConfig:
    """
    Load the configuration, falling back to defaults when no file exists.

    An explicitly given path must exist.
    """
    if config_path is not None:
        return AppConfig.load_from_yaml(config_path)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)

    return AppConfig().with_env_overrides()
