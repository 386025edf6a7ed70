"""
Tests for the TimetableStore session service.
"""

from dataclasses import replace
from itertools import count

import pytest

from timetabler.domain.exceptions import EntryNotFound, InvalidRange, OutsideWorkingHours
from timetabler.domain.models import CalendarSettings, DayOfWeek, EntryDraft
from timetabler.services.timetable_store import TimetableStore


def _build_store(**kwargs) -> TimetableStore:
    ids = count(1)
    return TimetableStore(id_factory=lambda: f"e{next(ids)}", **kwargs)


def _draft(day="Monday", start="09:00", end="10:00", subject="Maths", location="Room 1"):
    return EntryDraft(
        subject=subject, location=location, lecturer="Dr. A",
        day=day, start_time=start, end_time=end,
    )


class TestCreate:
    """Tests for adding entries."""

    def test_create_assigns_id_and_keeps_order(self):
        """Entries get generated ids and stay in insertion order."""
        store = _build_store()

        first = store.create(_draft(start="14:00", end="15:00"))
        second = store.create(_draft(start="09:00", end="10:00"))

        assert first.applied and second.applied
        assert [entry.id for entry in store.entries] == ["e1", "e2"]
        assert store.get("e2").start_time == "09:00"

    def test_default_ids_are_unique(self):
        """The default id factory never repeats within a session."""
        store = TimetableStore()

        ids = {store.create(_draft(day=day)).entry.id for day in ("Monday", "Tuesday", "Wednesday")}

        assert len(ids) == 3

    def test_overlap_needs_confirmation(self):
        """An overlapping entry is reported and not applied."""
        store = _build_store()
        store.create(_draft(start="09:00", end="11:00"))

        result = store.create(_draft(start="10:00", end="12:00", subject="Physics"))

        assert not result.applied
        assert result.needs_confirmation
        assert [conflict.id for conflict in result.conflicts] == ["e1"]
        assert "already an entry scheduled" in result.conflict_message()
        assert len(store) == 1

    def test_overlap_confirmed(self):
        """A confirmed overlap is applied."""
        store = _build_store()
        store.create(_draft(start="09:00", end="11:00"))

        result = store.create(_draft(start="10:00", end="12:00"), allow_overlap=True)

        assert result.applied
        assert len(store) == 2

    def test_touching_entries_do_not_conflict(self):
        """Back-to-back entries need no confirmation."""
        store = _build_store()
        store.create(_draft(start="09:00", end="10:00"))

        result = store.create(_draft(start="10:00", end="11:00"))

        assert result.applied
        assert result.conflicts == ()

    def test_outside_working_hours_rejected(self):
        """Entries must fit in the configured day window."""
        store = _build_store(settings=CalendarSettings(start_time="08:00", end_time="12:00"))

        with pytest.raises(OutsideWorkingHours):
            store.create(_draft(start="11:00", end="13:00"))

        assert len(store) == 0


class TestUpdate:
    """Tests for replacing entries."""

    def test_edit_location_preserves_id_and_others(self):
        """Editing one field keeps the id and leaves other entries untouched."""
        store = _build_store()
        store.create(_draft(start="09:00", end="10:00"))
        store.create(_draft(day="Tuesday", start="09:00", end="10:00", subject="Physics"))
        before = store.entries

        target = store.get("e1")
        result = store.update(replace(target, location="Room 42"))

        assert result.applied
        assert store.get("e1").location == "Room 42"
        assert store.get("e1").id == "e1"
        assert store.get("e1").subject == target.subject
        assert store.entries[1] == before[1]
        assert [entry.id for entry in store.entries] == ["e1", "e2"]

    def test_update_ignores_own_record(self):
        """Extending an entry does not collide with its old version."""
        store = _build_store()
        store.create(_draft(start="09:00", end="10:00"))

        result = store.update(replace(store.get("e1"), end_time="11:00"))

        assert result.applied
        assert store.get("e1").end_time == "11:00"

    def test_update_overlap_needs_confirmation(self):
        """An update colliding with another entry is not applied."""
        store = _build_store()
        store.create(_draft(start="09:00", end="10:00"))
        store.create(_draft(start="10:00", end="11:00"))

        result = store.update(replace(store.get("e2"), start_time="09:30"))

        assert not result.applied
        assert store.get("e2").start_time == "10:00"

    def test_update_unknown_id(self):
        """Unknown ids raise EntryNotFound."""
        store = _build_store()

        with pytest.raises(EntryNotFound):
            store.update(_draft().with_id("missing"))

    def test_invalid_edit_leaves_state_unchanged(self):
        """Rejected edits do not touch the store."""
        store = _build_store()
        store.create(_draft())

        with pytest.raises(InvalidRange):
            store.update(replace(store.get("e1"), end_time="08:00"))

        assert store.get("e1").end_time == "10:00"


class TestDelete:
    """Tests for removing entries."""

    def test_delete(self):
        """Deleting removes only the matching entry."""
        store = _build_store()
        store.create(_draft(start="09:00", end="10:00"))
        store.create(_draft(start="11:00", end="12:00"))

        removed = store.delete("e1")

        assert removed.id == "e1"
        assert [entry.id for entry in store.entries] == ["e2"]

    def test_delete_unknown_id(self):
        """Unknown ids raise EntryNotFound."""
        with pytest.raises(EntryNotFound, match="missing"):
            _build_store().delete("missing")


class TestSettingsAndSnapshot:
    """Tests for settings changes and derived views."""

    def test_settings_change_hides_but_keeps_entries(self):
        """Entries on days that stop being working days are kept."""
        store = _build_store()
        store.create(_draft(day="Friday"))

        store.update_settings(CalendarSettings(work_days=("Monday",)))

        assert len(store) == 1
        assert DayOfWeek.FRIDAY not in store.schedule()

    def test_snapshot(self):
        """The snapshot carries slots, labels, schedule and grid rows."""
        store = _build_store(settings=CalendarSettings(start_time="09:00", end_time="12:00"))
        store.create(_draft(start="09:00", end="11:00"))

        snapshot = store.snapshot()

        assert snapshot.time_slots == ["09:00", "10:00", "11:00"]
        assert snapshot.labels == ["09:00-10:00", "10:00-11:00", "11:00-12:00"]
        assert snapshot.schedule[DayOfWeek.MONDAY]["09:00"].span == 2
        assert len(snapshot.rows) == 5
        assert [cell.slot for cell in snapshot.rows[0].cells] == ["09:00", "11:00"]

    def test_snapshot_rows_with_confirmed_overlap(self):
        """Row spans still add up to the number of slots after an overlap is confirmed."""
        store = _build_store()
        store.create(_draft(start="09:00", end="11:00"))
        store.create(_draft(start="10:00", end="12:00", subject="Physics"), allow_overlap=True)

        snapshot = store.snapshot()

        for row in snapshot.rows:
            assert sum(cell.span for cell in row.cells) == len(snapshot.time_slots)
        anchors = [cell.entry.id for cell in snapshot.rows[0].cells if cell.entry is not None]
        assert anchors == ["e1"]

    def test_snapshot_is_frozen(self):
        """Later changes do not leak into an existing snapshot."""
        store = _build_store()
        store.create(_draft())
        snapshot = store.snapshot()

        store.delete("e1")

        assert len(snapshot.entries) == 1

    def test_load_rejects_duplicate_ids(self):
        """Seeding refuses ids already present."""
        store = _build_store()
        store.load(_draft().with_id("x"))

        with pytest.raises(ValueError):
            store.load(_draft(day="Tuesday").with_id("x"))
