"""
Service layer helpers that hold session state and delegate to the domain logic.
"""

from .timetable_store import ChangeResult, TimetableSnapshot, TimetableStore

__all__ = ["ChangeResult", "TimetableSnapshot", "TimetableStore"]
