"""Output generation for schedules (CSV, PDF, progress summary)."""

from supervisionplanner.output.csv_exporter import CSVExporter
from supervisionplanner.output.pdf_generator import PDFGenerator
from supervisionplanner.output.summary import ClientProgress, ProgressSummary

__all__ = [
    "CSVExporter",
    "ClientProgress",
    "PDFGenerator",
    "ProgressSummary",
]
