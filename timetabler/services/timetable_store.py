"""
Application service holding the timetable of one editing session.

The store owns the entry collection and the calendar settings and delegates
every grid computation to the domain-level time-grid functions. Overlaps are
not errors: a change that collides with existing entries comes back as an
unapplied ``ChangeResult`` listing the conflicts, and the caller decides
whether to confirm it with ``allow_overlap=True``.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple

from ..domain.exceptions import EntryNotFound, OutsideWorkingHours
from ..domain.models import CalendarSettings, EntryDraft, TimetableEntry
from ..domain.time_grid import (
    GridRow,
    Schedule,
    build_schedule,
    find_overlaps,
    layout_grid,
    settings_time_slots,
    slot_labels,
)

logger = logging.getLogger(__name__)


def new_entry_id() -> str:
    """Default id factory."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class ChangeResult:
    """Outcome of a create or update request."""
    entry: TimetableEntry
    applied: bool
    conflicts: Tuple[TimetableEntry, ...] = ()

    @property
    def needs_confirmation(self) -> bool:
        return not self.applied and bool(self.conflicts)

    def conflict_message(self) -> str:
        """Human readable advisory for the presentation layer."""
        if not self.conflicts:
            return ""
        names = ", ".join(conflict.describe() for conflict in self.conflicts)
        return f"There is already an entry scheduled for this time slot: {names}"


@dataclass(frozen=True)
class TimetableSnapshot:
    """
    Finalized view of the timetable handed to renderers and exporters.
    """
    entries: Tuple[TimetableEntry, ...]
    settings: CalendarSettings
    time_slots: List[str]
    labels: List[str]
    schedule: Schedule
    rows: List[GridRow] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        entries: Iterable[TimetableEntry],
        settings: CalendarSettings,
    ) -> "TimetableSnapshot":
        entries = tuple(entries)
        time_slots = settings_time_slots(settings)
        schedule = build_schedule(entries, settings)
        return cls(
            entries=entries,
            settings=settings,
            time_slots=time_slots,
            labels=slot_labels(time_slots, settings),
            schedule=schedule,
            rows=layout_grid(schedule, time_slots, settings),
        )


class TimetableStore:
    """
    In-memory timetable of one session.

    Entries keep their insertion order. Rejected operations raise a
    ``TimetableError`` and leave the store unchanged.
    """

    def __init__(
        self,
        settings: Optional[CalendarSettings] = None,
        entries: Iterable[TimetableEntry] = (),
        id_factory: Callable[[], str] = new_entry_id,
    ) -> None:
        self._settings = settings or CalendarSettings()
        self._entries: List[TimetableEntry] = list(entries)
        self._id_factory = id_factory

    @property
    def settings(self) -> CalendarSettings:
        return self._settings

    @property
    def entries(self) -> Tuple[TimetableEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, entry_id: str) -> TimetableEntry:
        """
        Look up an entry by id.

        Raises:
            EntryNotFound: If no entry has this id
        """
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        raise EntryNotFound(entry_id)

    def load(self, entry: TimetableEntry) -> TimetableEntry:
        """
        Append an entry that already has an id, without any validation
        beyond id uniqueness. Used to seed a session.
        """
        if any(existing.id == entry.id for existing in self._entries):
            raise ValueError(f"Duplicate entry id: {entry.id}")
        self._entries.append(entry)
        return entry

    def create(self, draft: EntryDraft, allow_overlap: bool = False) -> ChangeResult:
        """
        Add a new entry with a freshly generated id.

        Args:
            draft: Entry data
            allow_overlap: Apply the change even if it collides with other entries

        Returns:
            ChangeResult; ``applied`` is False if conflicts need confirmation

        Raises:
            OutsideWorkingHours: If the entry does not fit the day window
        """
        self._check_working_hours(draft)
        entry = draft.with_id(self._id_factory())

        conflicts = tuple(find_overlaps(entry, self._entries))
        if conflicts and not allow_overlap:
            logger.info("Entry %s overlaps %d existing entries", entry.describe(), len(conflicts))
            return ChangeResult(entry=entry, applied=False, conflicts=conflicts)

        self._entries.append(entry)
        logger.debug("Created entry %s: %s", entry.id, entry.describe())
        return ChangeResult(entry=entry, applied=True, conflicts=conflicts)

    def update(self, entry: TimetableEntry, allow_overlap: bool = False) -> ChangeResult:
        """
        Replace the entry with the same id.

        The entry's own previous record is ignored for the overlap check.

        Raises:
            EntryNotFound: If no entry has this id
            OutsideWorkingHours: If the entry does not fit the day window
        """
        index = self._index_of(entry.id)
        self._check_working_hours(entry)

        conflicts = tuple(find_overlaps(entry, self._entries, exclude_id=entry.id))
        if conflicts and not allow_overlap:
            logger.info("Update of %s overlaps %d existing entries", entry.id, len(conflicts))
            return ChangeResult(entry=entry, applied=False, conflicts=conflicts)

        self._entries[index] = entry
        logger.debug("Updated entry %s: %s", entry.id, entry.describe())
        return ChangeResult(entry=entry, applied=True, conflicts=conflicts)

    def delete(self, entry_id: str) -> TimetableEntry:
        """
        Remove an entry by id.

        Raises:
            EntryNotFound: If no entry has this id
        """
        removed = self._entries.pop(self._index_of(entry_id))
        logger.debug("Deleted entry %s", entry_id)
        return removed

    def update_settings(self, settings: CalendarSettings) -> CalendarSettings:
        """
        Replace the calendar settings.

        Entries are kept as they are; those outside the new window or on
        non-working days are simply not displayed.
        """
        self._settings = settings
        logger.debug(
            "Calendar settings: %s-%s %s on %s",
            settings.start_time, settings.end_time, settings.time_format.value,
            ", ".join(day.value for day in settings.work_days),
        )
        return settings

    def time_slots(self) -> List[str]:
        return settings_time_slots(self._settings)

    def schedule(self, strict: bool = False) -> Schedule:
        return build_schedule(self._entries, self._settings, strict=strict)

    def snapshot(self) -> TimetableSnapshot:
        """Freeze the current state for rendering or export."""
        return TimetableSnapshot.build(self._entries, self._settings)

    def _index_of(self, entry_id: str) -> int:
        for index, entry in enumerate(self._entries):
            if entry.id == entry_id:
                return index
        raise EntryNotFound(entry_id)

    def _check_working_hours(self, draft: EntryDraft) -> None:
        if not self._settings.contains(draft.slot):
            raise OutsideWorkingHours(
                f"{draft.start_time}-{draft.end_time} must be within the working hours "
                f"{self._settings.start_time}-{self._settings.end_time}"
            )
