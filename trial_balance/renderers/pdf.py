"""
PDF report renderer.

Lays out each statement on its own A4 page with reportlab: a centred title
block followed by a two-column table whose section, subsection and total
rows are banded with background colours.
"""

from __future__ import annotations

from decimal import Decimal
from io import BytesIO
from typing import List, Optional, Tuple
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from trial_balance.logging_setup import get_logger
from trial_balance.renderers.base import RenderedReport, report_filename
from trial_balance.renderers.layout import (
    LineKind,
    Statement,
    balance_sheet_lines,
    income_statement_lines,
)
from trial_balance.schema import BalanceSheetData, IncomeStatementData, ProjectInfo

logger = get_logger("renderers.pdf")

PDF_CONTENT_TYPE = "application/pdf"

_SECTION_BG = colors.HexColor("#e8e8e8")
_SUBSECTION_BG = colors.HexColor("#f4f4f4")
_HEADER_BG = colors.HexColor("#d0d0d0")
_TOTAL_BG = colors.HexColor("#ccffcc")
_LOSS_BG = colors.HexColor("#ffcccc")


def format_amount(value: Optional[Decimal]) -> str:
    if value is None:
        return ""
    return f"{value:,.2f}"


class PdfReportRenderer:
    """Render both statements into a two-page PDF."""

    def __init__(self) -> None:
        styles = getSampleStyleSheet()
        self._title = ParagraphStyle("title", parent=styles["Title"], alignment=1, fontSize=16)
        self._subtitle = ParagraphStyle(
            "subtitle", parent=styles["Heading2"], alignment=1, fontSize=12
        )
        self._period = ParagraphStyle("period", parent=styles["Normal"], alignment=1)

    def render(
        self,
        project: ProjectInfo,
        balance_sheet: BalanceSheetData,
        income_statement: IncomeStatementData,
    ) -> RenderedReport:
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=20 * mm,
            rightMargin=20 * mm,
            topMargin=20 * mm,
            bottomMargin=20 * mm,
            title=f"{project.company_name} Financial Report",
        )

        story: list = []
        story += self._statement_story(balance_sheet_lines(project, balance_sheet))
        story.append(PageBreak())
        story += self._statement_story(income_statement_lines(project, income_statement))
        doc.build(story)

        content = buffer.getvalue()
        logger.info("Rendered PDF report for %s (%d bytes)", project.company_name, len(content))
        return RenderedReport(
            content=content,
            content_type=PDF_CONTENT_TYPE,
            filename=report_filename(project, "pdf"),
        )

    def _statement_story(self, statement: Statement) -> list:
        story: list = []
        rows: List[List[str]] = []
        style: List[Tuple] = [
            ("ALIGN", (1, 0), (1, -1), "RIGHT"),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
            ("TOPPADDING", (0, 0), (-1, -1), 3),
        ]

        subtitles = 0
        for line in statement.lines:
            if line.kind is LineKind.TITLE:
                story.append(Paragraph(escape(line.label), self._title))
                continue
            if line.kind is LineKind.SUBTITLE:
                para_style = self._subtitle if subtitles == 0 else self._period
                story.append(Paragraph(escape(line.label), para_style))
                subtitles += 1
                continue
            if line.kind is LineKind.BLANK:
                if rows:
                    rows.append(["", ""])
                else:
                    story.append(Spacer(1, 6 * mm))
                continue

            i = len(rows)
            if line.kind is LineKind.HEADER:
                rows.append([line.label, "Amount"])
                style += [
                    ("BACKGROUND", (0, i), (-1, i), _HEADER_BG),
                    ("FONTNAME", (0, i), (-1, i), "Helvetica-Bold"),
                ]
            elif line.kind is LineKind.ITEM:
                rows.append([f"    {line.label}", format_amount(line.amount)])
            else:
                rows.append([line.label, format_amount(line.amount)])
                style.append(("FONTNAME", (0, i), (-1, i), "Helvetica-Bold"))
                if line.kind is LineKind.SECTION:
                    style.append(("BACKGROUND", (0, i), (-1, i), _SECTION_BG))
                elif line.kind is LineKind.SUBSECTION:
                    style.append(("BACKGROUND", (0, i), (-1, i), _SUBSECTION_BG))
                elif line.kind is LineKind.SUBTOTAL:
                    style.append(("LINEABOVE", (1, i), (1, i), 0.5, colors.black))
                elif line.kind is LineKind.TOTAL:
                    bg = _LOSS_BG if line.is_loss else _TOTAL_BG
                    style += [
                        ("BACKGROUND", (0, i), (-1, i), bg),
                        ("LINEABOVE", (1, i), (1, i), 0.5, colors.black),
                        ("LINEBELOW", (1, i), (1, i), 1.0, colors.black),
                    ]

        table = Table(rows, colWidths=[120 * mm, 45 * mm], hAlign="LEFT")
        table.setStyle(TableStyle(style))
        story.append(table)
        return story
