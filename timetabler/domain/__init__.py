"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import (
    DuplicateSlot,
    EntryNotFound,
    ExportError,
    InvalidRange,
    InvalidSettings,
    InvalidTime,
    OutsideWorkingHours,
    TimetableError,
)
from .models import CalendarSettings, DayOfWeek, EntryDraft, TimeFormat, TimeSlot, TimetableEntry
from .time_grid import (
    GridCell,
    GridIssue,
    GridRow,
    ScheduledEntry,
    build_schedule,
    format_slot_range,
    generate_time_slots,
    grid_issues,
    has_overlap,
    layout_grid,
    slot_span,
    visible_spans,
)

__all__ = [
    "CalendarSettings",
    "DayOfWeek",
    "DuplicateSlot",
    "EntryDraft",
    "EntryNotFound",
    "ExportError",
    "GridCell",
    "GridIssue",
    "GridRow",
    "InvalidRange",
    "InvalidSettings",
    "InvalidTime",
    "OutsideWorkingHours",
    "ScheduledEntry",
    "TimeFormat",
    "TimeSlot",
    "TimetableEntry",
    "TimetableError",
    "build_schedule",
    "format_slot_range",
    "generate_time_slots",
    "grid_issues",
    "has_overlap",
    "layout_grid",
    "slot_span",
    "visible_spans",
]
