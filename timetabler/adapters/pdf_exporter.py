"""
PDF export of the weekly grid using reportlab.

Layout: one A4 landscape page, a title bar, a header row of slot ranges and
one row per working day. Entries are drawn across their span and coloured per
subject.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pendulum
from reportlab.lib.colors import Color
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from ..domain.exceptions import ExportError
from ..domain.time_grid import ANCHOR
from ..services.timetable_store import TimetableSnapshot
from .base import DocumentExporter

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]


@dataclass(frozen=True)
class SlotColor:
    background: RGB
    border: RGB
    text: RGB


SLOT_COLORS: List[SlotColor] = [
    SlotColor(background=(219, 234, 254), border=(191, 219, 254), text=(37, 99, 235)),   # blue
    SlotColor(background=(254, 226, 226), border=(254, 202, 202), text=(220, 38, 38)),   # red
    SlotColor(background=(220, 252, 231), border=(187, 247, 208), text=(22, 163, 74)),   # green
    SlotColor(background=(254, 243, 199), border=(253, 230, 138), text=(217, 119, 6)),   # yellow
    SlotColor(background=(237, 233, 254), border=(221, 214, 254), text=(109, 40, 217)),  # purple
]


class SubjectPalette:
    """
    Assigns colours to subjects in first-seen order, cycling through the
    palette when it runs out.
    """

    def __init__(self, colors: Optional[List[SlotColor]] = None):
        self._colors = colors or SLOT_COLORS
        self._assigned: Dict[str, SlotColor] = {}

    def color_for(self, subject: str) -> SlotColor:
        if subject not in self._assigned:
            self._assigned[subject] = self._colors[len(self._assigned) % len(self._colors)]
        return self._assigned[subject]

    @property
    def assigned(self) -> Dict[str, SlotColor]:
        return dict(self._assigned)


def _rgb(value: RGB) -> Color:
    return Color(value[0] / 255, value[1] / 255, value[2] / 255)


class PdfExporter(DocumentExporter):
    """Renders the timetable on a single A4 landscape page."""

    extension = "pdf"

    MARGIN = 10 * mm
    TITLE_HEIGHT = 20 * mm
    DAY_COLUMN_WIDTH = 25 * mm
    FONT = "Helvetica"
    FONT_BOLD = "Helvetica-Bold"

    def __init__(self, title: str = "Weekly Timetable Schedule", filename_prefix: str = "weekly-schedule"):
        super().__init__(title=title, filename_prefix=filename_prefix)
        self.page_width, self.page_height = landscape(A4)

    def export(self, snapshot: TimetableSnapshot, output_path: Path) -> Path:
        output_path = Path(output_path)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            pdf = canvas.Canvas(str(output_path), pagesize=(self.page_width, self.page_height))
            pdf.setTitle(self.title)
            self.draw(pdf, snapshot)
            pdf.showPage()
            pdf.save()
        except OSError as exc:
            raise ExportError(f"Could not write PDF to {output_path}: {exc}") from exc

        logger.info("Wrote PDF timetable to %s", output_path)
        return output_path

    def draw(self, pdf: canvas.Canvas, snapshot: TimetableSnapshot) -> SubjectPalette:
        """
        Draw the whole page onto ``pdf``.

        Returns the palette so callers can see which colour each subject got.
        """
        usable_width = self.page_width - 2 * self.MARGIN
        usable_height = self.page_height - 2 * self.MARGIN
        slot_count = max(len(snapshot.time_slots), 1)
        column_width = (usable_width - self.DAY_COLUMN_WIDTH) / slot_count
        row_height = (usable_height - 25 * mm) / (len(snapshot.settings.work_days) + 1)

        self._draw_title(pdf)

        start_y = self.MARGIN + 15 * mm
        current_y = start_y

        # Header row
        pdf.setFillColor(_rgb((243, 244, 246)))
        self._rect(pdf, self.MARGIN, current_y, usable_width, row_height, fill=1, stroke=0)
        pdf.setFillColor(_rgb((31, 41, 55)))
        self._text(pdf, "Days", self.MARGIN + 4 * mm, current_y + 7 * mm, self.FONT_BOLD, 10)
        for index, label in enumerate(snapshot.labels):
            x = self.MARGIN + self.DAY_COLUMN_WIDTH + column_width * index
            self._text(pdf, label, x + 2 * mm, current_y + 7 * mm, self.FONT_BOLD, 10, column_width - 4 * mm)
        current_y += row_height

        palette = SubjectPalette()
        for row in snapshot.rows:
            pdf.setFillColor(_rgb((249, 250, 251)))
            self._rect(pdf, self.MARGIN, current_y, self.DAY_COLUMN_WIDTH, row_height, fill=1, stroke=0)
            pdf.setFillColor(_rgb((31, 41, 55)))
            self._text(pdf, row.day.value, self.MARGIN + 4 * mm, current_y + 7 * mm, self.FONT_BOLD, 10)

            for cell in row.cells:
                if cell.kind != ANCHOR or cell.entry is None:
                    continue
                x = self.MARGIN + self.DAY_COLUMN_WIDTH + column_width * cell.index
                self._draw_entry(pdf, palette, cell.entry, x, current_y, column_width * cell.span, row_height)

            current_y += row_height

        self._draw_grid(pdf, snapshot, start_y, current_y, usable_width, column_width, row_height)
        return palette

    def _draw_title(self, pdf: canvas.Canvas) -> None:
        pdf.setFillColor(_rgb((59, 130, 246)))
        self._rect(pdf, 0, 0, self.page_width, self.TITLE_HEIGHT, fill=1, stroke=0)

        pdf.setFont(self.FONT_BOLD, 16)
        pdf.setFillColor(_rgb((255, 255, 255)))
        pdf.drawCentredString(self.page_width / 2, self._y(13 * mm), self.title)

        pdf.setFont(self.FONT, 8)
        pdf.setFillColor(_rgb((220, 220, 220)))
        generated = pendulum.today().to_date_string()
        pdf.drawRightString(self.page_width - self.MARGIN - 2 * mm, self._y(8 * mm), f"Generated on: {generated}")

    def _draw_entry(self, pdf, palette, entry, x, top, width, height) -> None:
        colors = palette.color_for(entry.subject)

        pdf.setFillColor(_rgb(colors.background))
        pdf.setStrokeColor(_rgb(colors.border))
        self._rect(pdf, x, top, width, height, fill=1, stroke=1)

        text_x = x + 3 * mm
        text_width = width - 6 * mm

        pdf.setFillColor(_rgb(colors.text))
        self._text(pdf, entry.subject, text_x, top + 5 * mm, self.FONT_BOLD, 8, text_width)

        pdf.setFillColor(_rgb((75, 85, 99)))
        self._text(pdf, entry.location, text_x, top + 10 * mm, self.FONT, 8, text_width)
        self._text(pdf, entry.lecturer, text_x, top + 15 * mm, self.FONT, 8, text_width)

    def _draw_grid(self, pdf, snapshot, start_y, end_y, usable_width, column_width, row_height) -> None:
        pdf.setStrokeColor(_rgb((203, 213, 225)))
        pdf.setLineWidth(0.5)
        self._rect(pdf, self.MARGIN, start_y, usable_width, end_y - start_y, fill=0, stroke=1)

        pdf.setStrokeColor(_rgb((226, 232, 240)))
        pdf.setLineWidth(0.1)
        for i in range(len(snapshot.time_slots) + 1):
            x = self.MARGIN + self.DAY_COLUMN_WIDTH + column_width * i
            pdf.line(x, self._y(start_y), x, self._y(end_y))
        for i in range(len(snapshot.settings.work_days) + 2):
            y = self._y(start_y + row_height * i)
            pdf.line(self.MARGIN, y, self.MARGIN + usable_width, y)

    def _y(self, top: float) -> float:
        """Convert a distance from the top edge into reportlab's bottom-up y."""
        return self.page_height - top

    def _rect(self, pdf, x, top, width, height, fill=0, stroke=1) -> None:
        pdf.rect(x, self._y(top + height), width, height, fill=fill, stroke=stroke)

    def _text(self, pdf, text: str, x: float, top: float, font: str, size: float,
              max_width: Optional[float] = None) -> None:
        if not text:
            return
        pdf.setFont(font, size)
        if max_width is not None and max_width > 0:
            lines = simpleSplit(text, font, size, max_width)
            text = lines[0] if lines else text
        pdf.drawString(x, self._y(top), text)
