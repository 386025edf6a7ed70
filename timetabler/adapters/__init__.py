"""
Adapters layer - Document exporters (PDF, spreadsheet).
"""

from .base import DocumentExporter
from .pdf_exporter import PdfExporter, SubjectPalette
from .spreadsheet_exporter import SpreadsheetExporter

EXPORTERS = {
    PdfExporter.extension: PdfExporter,
    SpreadsheetExporter.extension: SpreadsheetExporter,
}

__all__ = ["DocumentExporter", "EXPORTERS", "PdfExporter", "SpreadsheetExporter", "SubjectPalette"]
