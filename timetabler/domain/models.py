"""
Domain models for weekly timetable entries and calendar settings.

Times of day are kept as zero-padded ``HH:MM`` strings so that plain string
comparison orders them correctly. The helpers below are the only place where
those strings are parsed or produced.
"""

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Tuple

import pendulum

from .exceptions import InvalidRange, InvalidSettings, InvalidTime

_TIME_PATTERN = re.compile(r"([01]\d|2[0-3]):([0-5]\d)")

# UTC midnight: minute offsets from it never cross a DST change
_MIDNIGHT = pendulum.datetime(2000, 1, 1)

MINUTES_PER_DAY = 24 * 60


class DayOfWeek(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    def __str__(self) -> str:
        return self.value


class TimeFormat(str, Enum):
    """Grid granularity of the weekly calendar."""
    HOURLY = "hourly"
    HALF_HOUR = "half-hour"

    @property
    def step_minutes(self) -> int:
        """Width of one slot in minutes."""
        return 60 if self is TimeFormat.HOURLY else 30

    def __str__(self) -> str:
        return self.value


WEEK: Tuple[DayOfWeek, ...] = tuple(DayOfWeek)
WORK_WEEK: Tuple[DayOfWeek, ...] = WEEK[:5]


def parse_time(value: str) -> int:
    """
    Convert an ``HH:MM`` string to minutes since midnight.

    Only the fixed-width form is accepted; ``"8:00"`` is rejected because
    unpadded values break lexicographic ordering.

    Raises:
        InvalidTime: If the value is not a zero-padded 24-hour time
    """
    if not isinstance(value, str):
        raise InvalidTime(f"Time must be an 'HH:MM' string, got {value!r}")
    if not _TIME_PATTERN.fullmatch(value):
        raise InvalidTime(f"Time must be zero-padded 'HH:MM' (00:00-23:59), got {value!r}")
    parsed = pendulum.from_format(value, "HH:mm")
    return parsed.hour * 60 + parsed.minute


def format_time(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``; 1440 wraps to ``00:00``."""
    return _MIDNIGHT.add(minutes=minutes).format("HH:mm")


def is_on_grid(value: str, time_format: TimeFormat) -> bool:
    """Check whether a time lies on a slot boundary of the given granularity."""
    return parse_time(value) % TimeFormat(time_format).step_minutes == 0


def _require_on_grid(value: str, time_format: TimeFormat, label: str) -> None:
    time_format = TimeFormat(time_format)
    if not is_on_grid(value, time_format):
        raise InvalidTime(
            f"{label} {value} is not on a {time_format.value} boundary"
        )


def _require_ordered(start_time: str, end_time: str) -> None:
    if parse_time(start_time) >= parse_time(end_time):
        raise InvalidRange(f"Start time {start_time} must be before end time {end_time}")


@dataclass(frozen=True)
class TimeSlot:
    """
    A time range within one day.

    Invariant: start_time must be before end_time.
    """
    start_time: str
    end_time: str

    def __post_init__(self):
        _require_ordered(self.start_time, self.end_time)

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return parse_time(self.end_time) - parse_time(self.start_time)

    def overlaps(self, other: "TimeSlot") -> bool:
        """Check if this slot overlaps with another (touching ends do not)."""
        return self.start_time < other.end_time and self.end_time > other.start_time

    def __str__(self) -> str:
        return f"{self.start_time}-{self.end_time}"


@dataclass(frozen=True)
class CalendarSettings:
    """
    Configuration of the weekly calendar grid.

    Invariants: start_time before end_time, at least one working day,
    start_time on the active step grid and end_time on the half-hour grid.
    Working days are de-duplicated, keeping their first position.
    """
    start_time: str = "08:00"
    end_time: str = "18:00"
    work_days: Tuple[DayOfWeek, ...] = WORK_WEEK
    time_format: TimeFormat = TimeFormat.HOURLY

    def __post_init__(self):
        object.__setattr__(self, "time_format", TimeFormat(self.time_format))

        days: list[DayOfWeek] = []
        for day in self.work_days:
            day = DayOfWeek(day)
            if day not in days:
                days.append(day)
        if not days:
            raise InvalidSettings("At least one working day must be selected")
        object.__setattr__(self, "work_days", tuple(days))

        _require_on_grid(self.start_time, self.time_format, "Start time")
        _require_on_grid(self.end_time, TimeFormat.HALF_HOUR, "End time")
        _require_ordered(self.start_time, self.end_time)

    def is_working_day(self, day: DayOfWeek) -> bool:
        """Check if entries on the given day are displayed."""
        return DayOfWeek(day) in self.work_days

    def contains(self, slot: TimeSlot) -> bool:
        """Check if a slot lies completely within the configured day window."""
        return slot.start_time >= self.start_time and slot.end_time <= self.end_time

    def with_time_format(self, time_format: TimeFormat) -> "CalendarSettings":
        """
        Switch granularity, snapping start and end up to the next boundary
        of the new format.
        """
        step = TimeFormat(time_format).step_minutes

        def snap(value: str) -> str:
            minutes = parse_time(value)
            snapped = -(-minutes // step) * step
            return format_time(min(snapped, MINUTES_PER_DAY - step))

        return replace(
            self,
            time_format=TimeFormat(time_format),
            start_time=snap(self.start_time),
            end_time=snap(self.end_time),
        )


@dataclass(frozen=True)
class EntryDraft:
    """Timetable entry data as entered by the user, before it has an id."""
    subject: str
    location: str
    lecturer: str
    day: DayOfWeek
    start_time: str
    end_time: str

    def __post_init__(self):
        object.__setattr__(self, "day", DayOfWeek(self.day))
        _require_on_grid(self.start_time, TimeFormat.HALF_HOUR, "Start time")
        _require_on_grid(self.end_time, TimeFormat.HALF_HOUR, "End time")
        _require_ordered(self.start_time, self.end_time)

    @property
    def slot(self) -> TimeSlot:
        return TimeSlot(self.start_time, self.end_time)

    def with_id(self, entry_id: str) -> "TimetableEntry":
        """Attach an identity to this draft."""
        return TimetableEntry(
            id=entry_id,
            subject=self.subject,
            location=self.location,
            lecturer=self.lecturer,
            day=self.day,
            start_time=self.start_time,
            end_time=self.end_time,
        )


@dataclass(frozen=True)
class TimetableEntry(EntryDraft):
    """
    A scheduled weekly entry.

    Entries are immutable; an edit produces a new record with the same id
    (see ``dataclasses.replace``) which replaces the old one wholesale.
    """
    id: str = field(default="", kw_only=True)

    def __post_init__(self):
        if not self.id:
            raise ValueError("Timetable entries require a non-empty id")
        super().__post_init__()

    def to_draft(self) -> EntryDraft:
        return EntryDraft(
            subject=self.subject,
            location=self.location,
            lecturer=self.lecturer,
            day=self.day,
            start_time=self.start_time,
            end_time=self.end_time,
        )

    def describe(self) -> str:
        """One-line description used in messages and listings."""
        return f"{self.subject} ({self.day} {self.start_time}-{self.end_time})"
