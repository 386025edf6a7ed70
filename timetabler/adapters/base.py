"""
Abstract base class for timetable document exporters.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import pendulum

from ..services.timetable_store import TimetableSnapshot


class DocumentExporter(ABC):
    """
    Interface for writers that turn a timetable snapshot into a document.

    Exporters only read the snapshot's precomputed slots, labels and grid
    rows; they never derive slots on their own.
    """

    extension: str = ""

    def __init__(self, title: str = "Weekly Timetable Schedule", filename_prefix: str = "weekly-schedule"):
        self.title = title
        self.filename_prefix = filename_prefix

    def default_filename(self, today: Optional[pendulum.Date] = None) -> str:
        """File name such as ``weekly-schedule-2024-11-25.pdf``."""
        today = today or pendulum.today().date()
        return f"{self.filename_prefix}-{today.to_date_string()}.{self.extension}"

    def resolve_path(self, output: Optional[Path], output_dir: Path = Path(".")) -> Path:
        """
        Decide where to write the document.

        An explicit directory gets the default file name appended.
        """
        if output is None:
            return output_dir / self.default_filename()
        if output.is_dir():
            return output / self.default_filename()
        return output

    @abstractmethod
    def export(self, snapshot: TimetableSnapshot, output_path: Path) -> Path:
        """
        Write the document.

        Args:
            snapshot: Finalized timetable state
            output_path: Target file

        Returns:
            The path that was written

        Raises:
            ExportError: If the document cannot be written
        """
