"""
Spreadsheet export of the weekly grid using openpyxl.
"""

import logging
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from ..domain.exceptions import ExportError
from ..domain.models import TimetableEntry
from ..domain.time_grid import ANCHOR
from ..services.timetable_store import TimetableSnapshot
from .base import DocumentExporter

logger = logging.getLogger(__name__)

SHEET_TITLE = "Weekly Schedule"
DAY_COLUMN_WIDTH = 12
SLOT_COLUMN_WIDTH = 25
ROW_HEIGHT = 80


def cell_text(entry: TimetableEntry) -> str:
    """Text of an entry cell: subject, location and lecturer on separate lines."""
    return "\n".join([
        entry.subject,
        f"Location: {entry.location}",
        f"Lecturer: {entry.lecturer}",
    ])


class SpreadsheetExporter(DocumentExporter):
    """
    Writes one sheet: a header row of slot ranges and one row per working
    day. Entries spanning several slots are merged across their columns.
    """

    extension = "xlsx"

    def build_workbook(self, snapshot: TimetableSnapshot) -> Workbook:
        wb = Workbook()
        ws = wb.active
        ws.title = SHEET_TITLE

        thin = Side(style="thin", color="E5E7EB")
        border = Border(left=thin, right=thin, top=thin, bottom=thin)
        alignment = Alignment(vertical="top", horizontal="left", wrap_text=True)
        header_fill = PatternFill("solid", fgColor="F3F4F6")
        day_fill = PatternFill("solid", fgColor="F9FAFB")
        body_fill = PatternFill("solid", fgColor="FFFFFF")

        headers = ["Day", *snapshot.labels]
        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = Font(name="Arial", size=10, bold=True, color="000000")
            cell.fill = header_fill if col > 1 else day_fill
            cell.alignment = alignment
            cell.border = border

        for row_index, row in enumerate(snapshot.rows, start=2):
            day_cell = ws.cell(row=row_index, column=1, value=row.day.value)
            day_cell.font = Font(name="Arial", size=10, bold=True, color="333333")
            day_cell.fill = day_fill
            day_cell.alignment = alignment
            day_cell.border = border

            for col in range(2, len(snapshot.time_slots) + 2):
                cell = ws.cell(row=row_index, column=col)
                cell.font = Font(name="Arial", size=10, color="333333")
                cell.fill = body_fill
                cell.alignment = alignment
                cell.border = border

            for grid_cell in row.cells:
                if grid_cell.kind != ANCHOR or grid_cell.entry is None:
                    continue
                col = grid_cell.index + 2
                ws.cell(row=row_index, column=col, value=cell_text(grid_cell.entry))
                if grid_cell.span > 1:
                    ws.merge_cells(
                        start_row=row_index,
                        start_column=col,
                        end_row=row_index,
                        end_column=col + grid_cell.span - 1,
                    )

        ws.column_dimensions["A"].width = DAY_COLUMN_WIDTH
        for col in range(2, len(snapshot.time_slots) + 2):
            ws.column_dimensions[get_column_letter(col)].width = SLOT_COLUMN_WIDTH
        for row_index in range(1, len(snapshot.rows) + 2):
            ws.row_dimensions[row_index].height = ROW_HEIGHT

        return wb

    def export(self, snapshot: TimetableSnapshot, output_path: Path) -> Path:
        output_path = Path(output_path)
        workbook = self.build_workbook(snapshot)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            workbook.save(output_path)
        except OSError as exc:
            raise ExportError(f"Could not write spreadsheet to {output_path}: {exc}") from exc

        logger.info("Wrote spreadsheet timetable to %s", output_path)
        return output_path
