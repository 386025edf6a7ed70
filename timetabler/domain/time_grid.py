"""
Time-grid model for the weekly timetable.

This is the heart of the application - pure functions without any I/O that
turn calendar settings into time slots, place entries on those slots and
detect scheduling conflicts. Every view and export uses these functions
instead of computing slots on its own.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from .exceptions import DuplicateSlot, InvalidRange, InvalidTime
from .models import (
    CalendarSettings,
    DayOfWeek,
    TimeFormat,
    TimetableEntry,
    format_time,
    is_on_grid,
    parse_time,
)

logger = logging.getLogger(__name__)

ANCHOR = "anchor"
COVERED = "covered"
FREE = "free"


class DayTimeRange(Protocol):
    """Anything that occupies a time range on a given day."""
    day: DayOfWeek
    start_time: str
    end_time: str


@dataclass(frozen=True)
class ScheduledEntry:
    """An entry placed on the grid, anchored at its start slot."""
    entry: TimetableEntry
    span: int


Schedule = Dict[DayOfWeek, Dict[str, ScheduledEntry]]


@dataclass(frozen=True)
class GridCell:
    """
    A renderable cell of the weekly grid.

    ``kind`` is ``"anchor"`` for the first slot of an entry (``span`` slots
    wide) or ``"free"`` for an empty slot. Cells covered by a multi-slot entry
    are not emitted at all.
    """
    day: DayOfWeek
    index: int
    slot: str
    kind: str
    span: int = 1
    entry: Optional[TimetableEntry] = None


@dataclass(frozen=True)
class GridRow:
    day: DayOfWeek
    cells: List[GridCell]


@dataclass(frozen=True)
class GridIssue:
    """An entry the grid does not show, or shows cut off."""
    entry: TimetableEntry
    reason: str
    hidden: bool = True


def generate_time_slots(time_format: TimeFormat, start_time: str, end_time: str) -> List[str]:
    """
    Generate the slot start labels of one day.

    Every label ``t`` satisfies ``start_time <= t < end_time``; the implicit
    end of the last slot is ``end_time``. With hourly granularity an end time
    at half past still yields the slot starting at that hour.

    Args:
        time_format: Slot granularity
        start_time: First slot start, on the step grid
        end_time: End of the day window, on the half-hour grid

    Returns:
        Ordered list of ``HH:MM`` labels

    Raises:
        InvalidTime: If a bound is malformed or off its grid
        InvalidRange: If start_time is not before end_time
    """
    time_format = TimeFormat(time_format)
    step = time_format.step_minutes

    if not is_on_grid(start_time, time_format):
        raise InvalidTime(f"Start time {start_time} is not on a {time_format.value} boundary")
    if not is_on_grid(end_time, TimeFormat.HALF_HOUR):
        raise InvalidTime(f"End time {end_time} is not on a half-hour boundary")

    start = parse_time(start_time)
    end = parse_time(end_time)
    if start >= end:
        raise InvalidRange(f"Start time {start_time} must be before end time {end_time}")

    return [format_time(minutes) for minutes in range(start, end, step)]


def settings_time_slots(settings: CalendarSettings) -> List[str]:
    """Generate the slots for a settings object."""
    return generate_time_slots(settings.time_format, settings.start_time, settings.end_time)


def format_slot_range(
    slot: str,
    time_format: TimeFormat,
    all_slots: Sequence[str],
    end_time: Optional[str] = None,
) -> str:
    """
    Format the ``HH:MM-HH:MM`` label of a slot.

    The label ends at the next slot. The last slot ends one granularity step
    later, clamped to ``end_time`` when given so that it never reaches past
    the configured end of day.
    """
    index = all_slots.index(slot) if slot in all_slots else -1
    if 0 <= index < len(all_slots) - 1:
        return f"{slot}-{all_slots[index + 1]}"

    slot_end = parse_time(slot) + TimeFormat(time_format).step_minutes
    if end_time is not None:
        slot_end = min(slot_end, parse_time(end_time))
    return f"{slot}-{format_time(slot_end)}"


def slot_labels(time_slots: Sequence[str], settings: CalendarSettings) -> List[str]:
    """Header labels for every slot of the grid."""
    return [
        format_slot_range(slot, settings.time_format, time_slots, settings.end_time)
        for slot in time_slots
    ]


def slot_span(
    entry_start: str,
    entry_end: str,
    all_slots: Sequence[str],
    end_time: Optional[str] = None,
) -> int:
    """
    Number of slots an entry covers, at least 1.

    Falls back to 1 when a boundary is not one of the slots, e.g. after the
    granularity changed. ``end_time`` names the closing boundary of the grid,
    which has no slot of its own.
    """
    boundaries = list(all_slots)
    if end_time is not None:
        boundaries.append(end_time)

    try:
        start_index = boundaries.index(entry_start)
        end_index = boundaries.index(entry_end)
    except ValueError:
        return 1
    return max(1, end_index - start_index)


def build_schedule(
    entries: Iterable[TimetableEntry],
    settings: CalendarSettings,
    strict: bool = False,
) -> Schedule:
    """
    Build the occupancy map: working day -> slot start -> placed entry.

    Entries are placed when their day is a working day and their start lies
    within ``[settings.start_time, settings.end_time)``. When several entries
    share a day and start time the first one in insertion order is kept and
    the rest are dropped with a warning.

    Args:
        entries: Entries in insertion order
        settings: Calendar settings
        strict: Raise DuplicateSlot instead of dropping duplicates

    Raises:
        DuplicateSlot: If strict and two entries share a day and start time
    """
    time_slots = settings_time_slots(settings)
    entries = list(entries)
    schedule: Schedule = {}

    for day in settings.work_days:
        placed: Dict[str, ScheduledEntry] = {}
        for entry in entries:
            if entry.day != day:
                continue
            if not settings.start_time <= entry.start_time < settings.end_time:
                continue

            existing = placed.get(entry.start_time)
            if existing is not None:
                if strict:
                    ids = tuple(
                        e.id for e in entries
                        if e.day == day and e.start_time == entry.start_time
                    )
                    raise DuplicateSlot(day.value, entry.start_time, ids)
                logger.warning(
                    "Entry %s starts on %s at %s like entry %s; it is not shown",
                    entry.id, day.value, entry.start_time, existing.entry.id,
                )
                continue

            placed[entry.start_time] = ScheduledEntry(
                entry=entry,
                span=slot_span(entry.start_time, entry.end_time, time_slots, settings.end_time),
            )

        schedule[day] = {start: placed[start] for start in sorted(placed)}

    return schedule


def visible_spans(
    day_schedule: Dict[str, ScheduledEntry],
    time_slots: Sequence[str],
) -> Dict[int, int]:
    """
    Map anchor index -> drawn span for the entries of one day.

    Slots are walked left to right. An entry whose start slot is already
    covered by an earlier entry is not drawn, and spans are clamped to the
    last slot, so the spans of a row never add up to more than the number of
    slots.
    """
    spans: Dict[int, int] = {}
    covered_until = 0
    for index, slot in enumerate(time_slots):
        scheduled = day_schedule.get(slot)
        if scheduled is None or index < covered_until:
            continue
        span = min(scheduled.span, len(time_slots) - index)
        spans[index] = span
        covered_until = index + span
    return spans


def cell_kind(
    day_schedule: Dict[str, ScheduledEntry],
    time_slots: Sequence[str],
    index: int,
) -> str:
    """
    Classify the grid cell at ``index`` of one day.

    Returns ``"anchor"`` if a drawn entry starts there, ``"covered"`` if it
    lies inside a multi-slot entry and ``"free"`` otherwise.
    """
    spans = visible_spans(day_schedule, time_slots)
    if index in spans:
        return ANCHOR
    for anchor_index, span in spans.items():
        if anchor_index <= index < anchor_index + span:
            return COVERED
    return FREE


def layout_grid(
    schedule: Schedule,
    time_slots: Sequence[str],
    settings: CalendarSettings,
) -> List[GridRow]:
    """
    Lay out one row of renderable cells per working day.

    Anchor cells carry their span; covered cells are skipped so that the
    anchor can be merged across them.
    """
    rows: List[GridRow] = []

    for day in settings.work_days:
        day_schedule = schedule.get(day, {})
        spans = visible_spans(day_schedule, time_slots)
        cells: List[GridCell] = []
        index = 0
        while index < len(time_slots):
            slot = time_slots[index]
            if index in spans:
                span = spans[index]
                cells.append(GridCell(day, index, slot, ANCHOR, span, day_schedule[slot].entry))
                index += span
            else:
                cells.append(GridCell(day, index, slot, FREE))
                index += 1
        rows.append(GridRow(day=day, cells=cells))

    return rows


def grid_issues(entries: Iterable[TimetableEntry], settings: CalendarSettings) -> List[GridIssue]:
    """
    Explain which entries the grid hides or cuts off.

    Entries are checked in insertion order against the same rules the grid
    uses: working days, the day window, the slot grid, duplicate starts and
    starts covered by an earlier entry. Entries running past the end of day
    are drawn but reported with ``hidden=False``.
    """
    entries = list(entries)
    time_slots = settings_time_slots(settings)
    schedule = build_schedule(entries, settings)
    spans = {day: visible_spans(day_schedule, time_slots) for day, day_schedule in schedule.items()}
    issues: List[GridIssue] = []

    for entry in entries:
        if not settings.is_working_day(entry.day):
            issues.append(GridIssue(entry, "not a working day"))
            continue
        if entry.end_time <= settings.start_time or entry.start_time >= settings.end_time:
            issues.append(GridIssue(entry, "outside working hours"))
            continue
        if entry.start_time < settings.start_time:
            issues.append(GridIssue(entry, "starts before working hours"))
            continue
        if entry.start_time not in time_slots:
            issues.append(GridIssue(entry, f"start is off the {settings.time_format.value} grid"))
            continue

        day_schedule = schedule[entry.day]
        placed = day_schedule[entry.start_time].entry
        if placed.id != entry.id:
            issues.append(GridIssue(entry, f"same start as {placed.subject}"))
            continue

        index = time_slots.index(entry.start_time)
        if index not in spans[entry.day]:
            owner = next(
                day_schedule[time_slots[anchor]].entry
                for anchor, span in spans[entry.day].items()
                if anchor < index < anchor + span
            )
            issues.append(GridIssue(entry, f"starts inside {owner.subject}"))
            continue

        if entry.end_time > settings.end_time:
            issues.append(GridIssue(entry, "ends after working hours", hidden=False))

    return issues


def find_overlaps(
    candidate: DayTimeRange,
    existing: Iterable[TimetableEntry],
    exclude_id: Optional[str] = None,
) -> List[TimetableEntry]:
    """
    Return the entries that collide with ``candidate``.

    Two ranges on the same day overlap when they intersect as half-open
    intervals; touching boundaries do not count. ``exclude_id`` skips the
    entry being edited.
    """
    return [
        entry for entry in existing
        if entry.id != exclude_id
        and entry.day == candidate.day
        and candidate.start_time < entry.end_time
        and candidate.end_time > entry.start_time
    ]


def has_overlap(
    candidate: DayTimeRange,
    existing: Iterable[TimetableEntry],
    exclude_id: Optional[str] = None,
) -> bool:
    """Check whether ``candidate`` collides with any existing entry."""
    return bool(find_overlaps(candidate, existing, exclude_id))


def slot_boundaries(time_slots: Sequence[str], end_time: str) -> List[str]:
    """Selectable boundaries of a day: every slot start plus the closing end time."""
    boundaries = list(time_slots)
    if not boundaries or boundaries[-1] != end_time:
        boundaries.append(end_time)
    return boundaries


def default_end_time(start_time: str, time_slots: Sequence[str], end_time: str) -> str:
    """The first boundary after ``start_time``, used to pre-fill an end time."""
    for boundary in slot_boundaries(time_slots, end_time):
        if boundary > start_time:
            return boundary
    return end_time
