"""
Domain-specific exception hierarchy for the timetable editor.
"""


class TimetableError(Exception):
    """Base class for all application-level errors."""


class InvalidTime(TimetableError, ValueError):
    """Raised when a time value is malformed or off the active slot grid."""


class InvalidRange(TimetableError, ValueError):
    """Raised when a start time is not strictly before its end time."""


class InvalidSettings(TimetableError, ValueError):
    """Raised when calendar settings cannot be accepted."""


class OutsideWorkingHours(TimetableError, ValueError):
    """Raised when an entry does not fit into the configured day window."""


class DuplicateSlot(TimetableError):
    """Raised when two entries claim the same day and start time."""

    def __init__(self, day: str, start_time: str, entry_ids: tuple[str, ...]):
        self.day = day
        self.start_time = start_time
        self.entry_ids = entry_ids
        super().__init__(
            f"{len(entry_ids)} entries start on {day} at {start_time}: {', '.join(entry_ids)}"
        )


class EntryNotFound(TimetableError, KeyError):
    """Raised when no entry with the requested id exists."""

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(entry_id)

    def __str__(self) -> str:
        return f"No timetable entry with id '{self.entry_id}'"


class ExportError(TimetableError):
    """Raised when a document cannot be written."""
