"""
Report renderers.

Each renderer turns a project plus its two statements into a downloadable
document::

    report = ExcelReportRenderer().render(project, balance_sheet, income_statement)
    report.content, report.content_type, report.filename
"""

from trial_balance.renderers.base import RenderedReport, report_filename
from trial_balance.renderers.excel import ExcelReportRenderer
from trial_balance.renderers.pdf import PdfReportRenderer

__all__ = [
    "ExcelReportRenderer",
    "PdfReportRenderer",
    "RenderedReport",
    "report_filename",
]
