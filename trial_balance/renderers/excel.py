"""
Excel report renderer.

Writes a two-sheet workbook ("Balance Sheet", "Income Statement") with
openpyxl.  Each sheet has a description column and an amount column in
``#,##0.00`` format.
"""

from __future__ import annotations

from decimal import Decimal
from io import BytesIO
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Border, Font, PatternFill, Side
from openpyxl.worksheet.worksheet import Worksheet

from trial_balance.logging_setup import get_logger
from trial_balance.renderers.base import RenderedReport, report_filename
from trial_balance.renderers.layout import (
    LineKind,
    Statement,
    balance_sheet_lines,
    income_statement_lines,
)
from trial_balance.schema import BalanceSheetData, IncomeStatementData, ProjectInfo

logger = get_logger("renderers.excel")

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
NUMBER_FORMAT = "#,##0.00"


def _fill(argb: str) -> PatternFill:
    return PatternFill(start_color=argb, end_color=argb, fill_type="solid")


_HEADER_FILL = _fill("FFD0D0D0")
_SECTION_FILL = _fill("FFE8E8E8")
_TOTAL_FILL = _fill("FFCCFFCC")
_LOSS_FILL = _fill("FFFFCCCC")
_TOTAL_BORDER = Border(top=Side(style="thin"), bottom=Side(style="double"))

_FONTS = {
    LineKind.TITLE: Font(bold=True, size=16),
    LineKind.HEADER: Font(bold=True),
    LineKind.SECTION: Font(bold=True),
    LineKind.SUBSECTION: Font(bold=True),
    LineKind.SUBTOTAL: Font(bold=True),
    LineKind.TOTAL: Font(bold=True, size=12),
}


def _excel_number(value: Optional[Decimal]) -> Optional[float]:
    return None if value is None else float(value)


class ExcelReportRenderer:
    """Render both statements into an ``.xlsx`` workbook."""

    def render(
        self,
        project: ProjectInfo,
        balance_sheet: BalanceSheetData,
        income_statement: IncomeStatementData,
    ) -> RenderedReport:
        wb = Workbook()
        # The default sheet is reused for the balance sheet.
        self._write_sheet(wb.active, balance_sheet_lines(project, balance_sheet))
        self._write_sheet(
            wb.create_sheet(), income_statement_lines(project, income_statement)
        )

        buffer = BytesIO()
        wb.save(buffer)
        content = buffer.getvalue()
        logger.info("Rendered Excel report for %s (%d bytes)", project.company_name, len(content))
        return RenderedReport(
            content=content,
            content_type=XLSX_CONTENT_TYPE,
            filename=report_filename(project, "xlsx"),
        )

    @staticmethod
    def _write_sheet(ws: Worksheet, statement: Statement) -> None:
        ws.title = statement.title
        ws.column_dimensions["A"].width = 50
        ws.column_dimensions["B"].width = 20

        subtitle_seen = False
        for line in statement.lines:
            if line.kind is LineKind.BLANK:
                ws.append([])
                continue
            if line.kind is LineKind.HEADER:
                ws.append([line.label, "Amount"])
            elif line.kind is LineKind.ITEM:
                ws.append([f"  {line.label}", _excel_number(line.amount)])
            else:
                ws.append([line.label, _excel_number(line.amount)])

            row = ws.max_row
            label_cell = ws.cell(row=row, column=1)
            amount_cell = ws.cell(row=row, column=2)

            if line.kind is LineKind.SUBTITLE:
                # Only the statement name is emphasised, not the date line.
                if not subtitle_seen:
                    label_cell.font = Font(bold=True, size=14)
                    subtitle_seen = True
                continue

            font = _FONTS.get(line.kind)
            if font is not None:
                label_cell.font = font
                amount_cell.font = font

            if line.kind is LineKind.HEADER:
                label_cell.fill = amount_cell.fill = _HEADER_FILL
            elif line.kind is LineKind.SECTION:
                label_cell.fill = amount_cell.fill = _SECTION_FILL
            elif line.kind is LineKind.TOTAL:
                fill = _LOSS_FILL if line.is_loss else _TOTAL_FILL
                label_cell.fill = amount_cell.fill = fill
                amount_cell.border = _TOTAL_BORDER

            if line.amount is not None:
                amount_cell.number_format = NUMBER_FORMAT
