"""
Tests for configuration loading.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from timetabler.config import AppConfig, CalendarConfig
from timetabler.domain.models import DayOfWeek, TimeFormat

CONFIG_YAML = """
calendar:
  start_time: "09:00"
  end_time: "17:00"
  time_format: half-hour
  work_days: [Monday, Wednesday, Monday]
export:
  title: Semester Plan
log_level: info
entries:
  - id: algebra
    subject: Linear Algebra
    location: Room 101
    lecturer: Dr. Smith
    day: Monday
    start_time: "09:00"
    end_time: "10:30"
  - subject: Chemistry
    day: Saturday
    start_time: "10:00"
    end_time: "11:00"
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestCalendarConfig:
    """Tests for CalendarConfig."""

    def test_defaults(self):
        """Test the default calendar."""
        settings = CalendarConfig().to_settings()

        assert settings.start_time == "08:00"
        assert settings.end_time == "18:00"
        assert len(settings.work_days) == 5

    def test_rejects_unpadded_time(self):
        """Test that times must be zero-padded."""
        with pytest.raises(ValidationError):
            CalendarConfig(start_time="8:00")

    def test_rejects_inverted_window(self):
        """Test that the day must open before it closes."""
        with pytest.raises(ValidationError, match="end_time must be later"):
            CalendarConfig(start_time="12:00", end_time="09:00")

    def test_rejects_empty_work_days(self):
        """Test that working days are required."""
        with pytest.raises(ValidationError):
            CalendarConfig(work_days=[])


class TestAppConfig:
    """Tests for AppConfig."""

    def test_load_from_yaml(self, tmp_path):
        """Test loading a full config file."""
        config = AppConfig.load_from_yaml(_write(tmp_path, CONFIG_YAML))

        assert config.calendar.time_format is TimeFormat.HALF_HOUR
        assert config.calendar.work_days == [DayOfWeek.MONDAY, DayOfWeek.WEDNESDAY]
        assert config.export.title == "Semester Plan"
        assert config.export.filename_prefix == "weekly-schedule"
        assert config.log_level == "INFO"
        assert len(config.entries) == 2

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            AppConfig.load_from_yaml(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        """Test that broken YAML raises ValueError."""
        with pytest.raises(ValueError, match="Invalid YAML"):
            AppConfig.load_from_yaml(_write(tmp_path, "calendar: [unclosed"))

    def test_non_mapping_root(self, tmp_path):
        """Test that the root must be a mapping."""
        with pytest.raises(ValueError, match="mapping"):
            AppConfig.load_from_yaml(_write(tmp_path, "- a\n- b\n"))

    def test_empty_file_gives_defaults(self, tmp_path):
        """Test that an empty file is a valid config."""
        config = AppConfig.load_from_yaml(_write(tmp_path, ""))

        assert config.entries == []

    def test_duplicate_entry_ids(self):
        """Test that explicit entry ids must be unique."""
        entry = {"id": "x", "subject": "A", "day": "Monday", "start_time": "09:00", "end_time": "10:00"}

        with pytest.raises(ValidationError, match="Duplicate entry id"):
            AppConfig(entries=[entry, entry])

    def test_load_or_default_without_file(self, tmp_path, monkeypatch):
        """Test that a missing default config falls back to defaults."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("timetabler.config.get_default_config_path", lambda: tmp_path / "config.yaml")

        config = AppConfig.load_or_default(None)

        assert config == AppConfig()

    def test_build_store(self, tmp_path):
        """Test that seed entries end up in the session store."""
        config = AppConfig.load_from_yaml(_write(tmp_path, CONFIG_YAML))

        store = config.build_store()

        assert store.settings.time_format is TimeFormat.HALF_HOUR
        assert store.get("algebra").end_time == "10:30"
        chemistry = store.entries[1]
        assert chemistry.subject == "Chemistry"
        assert chemistry.id
        # Saturday is not a working day: kept but not displayed
        assert DayOfWeek.SATURDAY not in store.schedule()
