"""Console and Excel reporting for sync runs."""

from .console_report import display_report, display_valuations
from .excel_generator import ExcelReportGenerator

__all__ = ["display_report", "display_valuations", "ExcelReportGenerator"]
