"""
Statement layout shared by the report renderers.

Both statements are flattened into an ordered list of ``Line`` records.
Renderers only style lines; every figure comes from the aggregator.  Display
sign rules:

* liabilities and equity are shown as absolute values;
* cost of sales, operating and finance expenses are shown negated, so they
  read as deductions from revenue;
* profit figures and taxation are shown as computed.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Callable, List, NamedTuple, Optional, Sequence

from trial_balance.aggregator import display_amount
from trial_balance.schema import (
    BalanceSheetData,
    ClassifiedEntry,
    IncomeStatementData,
    ProjectInfo,
)


class LineKind(str, Enum):
    TITLE = "title"
    SUBTITLE = "subtitle"
    HEADER = "header"
    SECTION = "section"
    SUBSECTION = "subsection"
    ITEM = "item"
    SUBTOTAL = "subtotal"
    TOTAL = "total"
    BLANK = "blank"


class Line(NamedTuple):
    kind: LineKind
    label: str = ""
    amount: Optional[Decimal] = None
    # Negative profit lines are highlighted differently.
    is_loss: bool = False


class Statement(NamedTuple):
    title: str
    lines: List[Line]


def _long_date(d: date) -> str:
    return f"{d.strftime('%B')} {d.day}, {d.year}"


def _identity(v: Decimal) -> Decimal:
    return v


def _negate(v: Decimal) -> Decimal:
    return -v


def _items(
    entries: Sequence[ClassifiedEntry], shown: Callable[[Decimal], Decimal]
) -> List[Line]:
    return [Line(LineKind.ITEM, e.account_name or e.account_code, shown(e.final_amount))
            for e in entries]


def _heading(project: ProjectInfo, title: str, period: str) -> List[Line]:
    return [
        Line(LineKind.TITLE, project.company_name),
        Line(LineKind.SUBTITLE, title),
        Line(LineKind.SUBTITLE, period),
        Line(LineKind.BLANK),
        Line(LineKind.HEADER, "Description"),
    ]


def balance_sheet_lines(project: ProjectInfo, sheet: BalanceSheetData) -> Statement:
    lines = _heading(
        project,
        "Statement of Financial Position",
        f"As at {_long_date(project.period_end)}",
    )

    lines.append(Line(LineKind.SECTION, "ASSETS"))
    lines.append(Line(LineKind.SUBSECTION, "Non-Current Assets"))
    lines += _items(sheet.non_current_assets, _identity)
    lines.append(Line(LineKind.SUBTOTAL, "Total Non-Current Assets",
                      sheet.total_non_current_assets))
    lines.append(Line(LineKind.SUBSECTION, "Current Assets"))
    lines += _items(sheet.current_assets, _identity)
    lines.append(Line(LineKind.SUBTOTAL, "Total Current Assets", sheet.total_current_assets))
    lines.append(Line(LineKind.TOTAL, "TOTAL ASSETS", sheet.total_assets))
    lines.append(Line(LineKind.BLANK))

    lines.append(Line(LineKind.SECTION, "LIABILITIES"))
    lines.append(Line(LineKind.SUBSECTION, "Non-Current Liabilities"))
    lines += _items(sheet.non_current_liabilities, display_amount)
    lines.append(Line(LineKind.SUBTOTAL, "Total Non-Current Liabilities",
                      display_amount(sheet.total_non_current_liabilities)))
    lines.append(Line(LineKind.SUBSECTION, "Current Liabilities"))
    lines += _items(sheet.current_liabilities, display_amount)
    lines.append(Line(LineKind.SUBTOTAL, "Total Current Liabilities",
                      display_amount(sheet.total_current_liabilities)))
    lines.append(Line(LineKind.SUBTOTAL, "TOTAL LIABILITIES",
                      display_amount(sheet.total_liabilities)))
    lines.append(Line(LineKind.BLANK))

    lines.append(Line(LineKind.SECTION, "EQUITY"))
    lines += _items(sheet.equity, display_amount)
    lines.append(Line(LineKind.SUBTOTAL, "TOTAL EQUITY", display_amount(sheet.total_equity)))
    lines.append(Line(LineKind.BLANK))
    lines.append(Line(LineKind.TOTAL, "TOTAL LIABILITIES AND EQUITY",
                      display_amount(sheet.total_liabilities_and_equity)))
    return Statement("Balance Sheet", lines)


def income_statement_lines(project: ProjectInfo, stmt: IncomeStatementData) -> Statement:
    lines = _heading(
        project,
        "Statement of Profit or Loss",
        f"For the period ending {_long_date(project.period_end)}",
    )

    lines.append(Line(LineKind.SECTION, "REVENUE"))
    lines += _items(stmt.revenue, abs)
    lines.append(Line(LineKind.SUBTOTAL, "Total Revenue", stmt.total_revenue))

    lines.append(Line(LineKind.SECTION, "COST OF SALES"))
    lines += _items(stmt.cost_of_sales, _negate)
    lines.append(Line(LineKind.SUBTOTAL, "Total Cost of Sales", -stmt.total_cost_of_sales))
    lines.append(Line(LineKind.TOTAL, "GROSS PROFIT", stmt.gross_profit,
                      is_loss=stmt.gross_profit < 0))

    lines.append(Line(LineKind.SECTION, "OPERATING EXPENSES"))
    lines += _items(stmt.operating_expenses, _negate)
    lines.append(Line(LineKind.SUBTOTAL, "Total Operating Expenses",
                      -stmt.total_operating_expenses))
    lines.append(Line(LineKind.TOTAL, "OPERATING PROFIT", stmt.operating_profit,
                      is_loss=stmt.operating_profit < 0))

    # Optional sections are omitted when empty.
    if stmt.finance_costs:
        lines.append(Line(LineKind.SECTION, "FINANCE COSTS"))
        lines += _items(stmt.finance_costs, _negate)
        lines.append(Line(LineKind.SUBTOTAL, "PROFIT BEFORE TAX", stmt.profit_before_tax))

    if stmt.taxation:
        lines.append(Line(LineKind.SECTION, "TAXATION"))
        lines += _items(stmt.taxation, _identity)

    lines.append(Line(LineKind.TOTAL, "NET PROFIT / (LOSS)", stmt.net_profit,
                      is_loss=stmt.net_profit < 0))
    return Statement("Income Statement", lines)
