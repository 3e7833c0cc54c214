"""
Excel report generator for sync results.
Creates a workbook with a run summary and one row per account mapping.
"""

from datetime import datetime
from pathlib import Path
import logging

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Border, Side
from openpyxl.worksheet.worksheet import Worksheet

from ..models.sync import OutcomeKind, SyncMode, SyncReport

logger = logging.getLogger(__name__)

# Style definitions
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)
APPLIED_FILL = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
SKIPPED_FILL = PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid")
FAILED_FILL = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)

OUTCOME_HEADERS = [
    "Ghostfolio Account",
    "Actual Account",
    "Outcome",
    "Applied",
    "Target Value",
    "Base Balance",
    "Reconciliation Amount",
    "Previous Amount",
    "Note",
    "Reason",
]


class ExcelReportGenerator:
    """Generates an Excel audit workbook for a sync run."""

    def generate_report(self, report: SyncReport, output_path: Path) -> Path:
        """
        Generate the sync report.

        Args:
            report: Result of a sync run
            output_path: Path for output file

        Returns:
            Path to generated report
        """
        logger.info(f"Generating Excel report: {output_path}")

        wb = Workbook()

        # Remove default sheet
        if wb.active:
            wb.remove(wb.active)

        self._create_summary_sheet(wb, report)
        self._create_outcomes_sheet(wb, report)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)
        logger.info(f"Report saved: {output_path}")

        return output_path

    def _create_summary_sheet(self, wb: Workbook, report: SyncReport) -> None:
        """Create the summary sheet with key metrics."""
        ws = wb.create_sheet("Summary")

        ws["A1"] = "Ghostfolio to Actual Budget Sync"
        ws["A1"].font = Font(size=16, bold=True)
        ws.merge_cells("A1:D1")

        rows = [
            ("Run Started:", report.started_at.strftime("%Y-%m-%d %H:%M:%S")),
            ("Reconciliation Date:", report.reconciliation_date.isoformat()),
            ("Mode:", "Dry run" if report.mode == SyncMode.PREVIEW else "Execute"),
            ("Config File:", report.config_file_used or "Default"),
            ("Processing Time:", f"{report.processing_time_seconds:.2f} seconds"),
            ("", ""),
            ("Accounts Mapped:", len(report.outcomes)),
            ("Values Found:", len(report.valuations)),
            ("Created:", report.created_count),
            ("Updated:", report.updated_count),
            ("Skipped:", report.skipped_count),
            ("Failed:", report.failed_count),
            ("Total Adjustment:", float(report.total_adjustment)),
        ]

        for i, (label, value) in enumerate(rows, start=3):
            ws[f"A{i}"] = label
            ws[f"B{i}"] = value

        row = len(rows) + 4
        if report.diagnostics:
            ws[f"A{row}"] = "Diagnostics"
            ws[f"A{row}"].font = Font(bold=True)
            for message in report.diagnostics:
                row += 1
                ws[f"A{row}"] = message

        ws.column_dimensions["A"].width = 30
        ws.column_dimensions["B"].width = 40

    def _create_outcomes_sheet(self, wb: Workbook, report: SyncReport) -> None:
        """Create the per-mapping outcomes sheet."""
        ws = wb.create_sheet("Outcomes")

        for col, header in enumerate(OUTCOME_HEADERS, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.fill = HEADER_FILL
            cell.font = HEADER_FONT
            cell.border = THIN_BORDER

        for row_num, outcome in enumerate(report.outcomes, start=2):
            row_data = [
                outcome.source_account,
                outcome.ledger_account,
                outcome.kind.value,
                "yes" if outcome.applied else "no",
                float(outcome.target_value) if outcome.target_value is not None else "",
                float(outcome.base_balance) if outcome.base_balance is not None else "",
                float(outcome.amount) if outcome.amount is not None else "",
                float(outcome.previous_amount) if outcome.previous_amount is not None else "",
                outcome.note or "",
                outcome.reason or "",
            ]

            if outcome.kind == OutcomeKind.FAILED:
                fill = FAILED_FILL
            elif outcome.is_skipped:
                fill = SKIPPED_FILL
            else:
                fill = APPLIED_FILL

            for col, value in enumerate(row_data, start=1):
                cell = ws.cell(row=row_num, column=col, value=value)
                cell.border = THIN_BORDER
                cell.fill = fill

        ws.cell(row=len(report.outcomes) + 3, column=1, value="Generated At:")
        ws.cell(
            row=len(report.outcomes) + 3,
            column=2,
            value=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        )

        self._auto_fit_columns(ws)

    def _auto_fit_columns(self, ws: Worksheet) -> None:
        """Auto-fit column widths based on content."""
        for column_cells in ws.columns:
            max_length = 0
            column = column_cells[0].column_letter

            for cell in column_cells:
                if cell.value is not None:
                    max_length = max(max_length, len(str(cell.value)))

            ws.column_dimensions[column].width = min(max_length + 2, 60)
