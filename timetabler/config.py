"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import (
    CalendarSettings,
    DayOfWeek,
    EntryDraft,
    TimeFormat,
    TimetableEntry,
    WORK_WEEK,
    parse_time,
)
from .services.timetable_store import TimetableStore, new_entry_id


class CalendarConfig(BaseModel):
    """Initial calendar settings."""
    start_time: str = "08:00"
    end_time: str = "18:00"
    work_days: List[DayOfWeek] = Field(default_factory=lambda: list(WORK_WEEK))
    time_format: TimeFormat = TimeFormat.HOURLY

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        """Validate times are zero-padded HH:MM."""
        parse_time(value)
        return value

    @field_validator("work_days")
    @classmethod
    def validate_work_days(cls, value: List[DayOfWeek]) -> List[DayOfWeek]:
        """Ensure at least one working day and drop duplicates."""
        if not value:
            raise ValueError("work_days must contain at least one day")
        # Preserve order while removing duplicates
        deduped: List[DayOfWeek] = []
        for day in value:
            if day not in deduped:
                deduped.append(day)
        return deduped

    @model_validator(mode="after")
    def validate_window(self) -> "CalendarConfig":
        """Ensure the configured day opens before it closes."""
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be later than start_time")
        return self

    def to_settings(self) -> CalendarSettings:
        """Build the domain settings object."""
        return CalendarSettings(
            start_time=self.start_time,
            end_time=self.end_time,
            work_days=tuple(self.work_days),
            time_format=self.time_format,
        )


class ExportConfig(BaseModel):
    """Document export settings."""
    output_dir: Path = Path(".")
    filename_prefix: str = "weekly-schedule"
    title: str = "Weekly Timetable Schedule"


class EntryConfig(BaseModel):
    """A timetable entry preloaded into the session."""
    id: Optional[str] = None
    subject: str
    location: str = ""
    lecturer: str = ""
    day: DayOfWeek
    start_time: str
    end_time: str

    def to_draft(self) -> EntryDraft:
        return EntryDraft(
            subject=self.subject,
            location=self.location,
            lecturer=self.lecturer,
            day=self.day,
            start_time=self.start_time,
            end_time=self.end_time,
        )


class AppConfig(BaseModel):
    """Application configuration."""
    calendar: CalendarConfig = Field(default_factory=CalendarConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    entries: List[EntryConfig] = Field(default_factory=list)
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("entries")
    @classmethod
    def validate_entries(cls, value: List[EntryConfig]) -> List[EntryConfig]:
        """Ensure explicit entry ids are unique."""
        seen: set[str] = set()
        for entry in value:
            if entry.id is None:
                continue
            if entry.id in seen:
                raise ValueError(f"Duplicate entry id detected: {entry.id}")
            seen.add(entry.id)
        return value

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

    @classmethod
    def load_or_default(cls, config_path: Optional[Path]) -> "AppConfig":
        """
        Load an explicitly given config file, or the default one if present.

        Without an explicit path a missing default file yields the built-in
        defaults instead of an error.
        """
        if config_path is not None:
            return cls.load_from_yaml(config_path)

        default_path = get_default_config_path()
        if default_path.exists():
            return cls.load_from_yaml(default_path)
        return cls()

    def build_store(self) -> TimetableStore:
        """
        Create a session store preloaded with the configured entries.

        Entries without an explicit id get a generated one. Seed entries are
        taken as they are; overlaps among them are reported by ``check`` and
        entries outside the calendar window are simply not displayed.
        """
        store = TimetableStore(settings=self.calendar.to_settings())
        for item in self.entries:
            store.load(item.to_draft().with_id(item.id or new_entry_id()))
        return store


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
