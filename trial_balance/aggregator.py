"""
Statement Aggregation Layer.

Buckets classified entries into the balance sheet and the income statement
and computes their totals.

Amounts are summed exactly as stored.  Under the trial-balance convention
liabilities, equity and revenue are negative (credits); this layer keeps
those signs, except for total revenue which is reported as an absolute
value so that the profit cascade reads naturally:

    gross profit      = revenue − cost of sales
    operating profit  = gross profit − operating expenses
    profit before tax = operating profit − finance costs
    net profit        = profit before tax − taxation

Presentation layers apply ``display_amount`` (``abs``) to liability and
equity figures; nothing here flips signs for display.
"""

from __future__ import annotations

from collections import Counter
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Sequence

from trial_balance.logging_setup import get_logger
from trial_balance.schema import (
    BalanceSheetData,
    Classification,
    ClassifiedEntry,
    IncomeStatementData,
    ReportSection,
)

logger = get_logger("aggregator")


def total(entries: Iterable[ClassifiedEntry]) -> Decimal:
    """Sum of final amounts."""
    return sum((e.final_amount for e in entries), Decimal("0"))


def display_amount(value: Decimal) -> Decimal:
    """Presentation form of a credit-natured figure."""
    return abs(value)


def _bucket(
    entries: Sequence[ClassifiedEntry], classification: Classification
) -> List[ClassifiedEntry]:
    return [e for e in entries if e.classification is classification]


class StatementAggregator:
    """Build statements from classified entries.

    Both builders are pure and independent of each other.
    """

    @staticmethod
    def build_balance_sheet(entries: Sequence[ClassifiedEntry]) -> BalanceSheetData:
        bs = [e for e in entries if e.report_section is ReportSection.BALANCE_SHEET]

        sheet = BalanceSheetData(
            non_current_assets=_bucket(bs, Classification.BS_NON_CURRENT_ASSET),
            current_assets=_bucket(bs, Classification.BS_CURRENT_ASSET),
            non_current_liabilities=_bucket(bs, Classification.BS_NON_CURRENT_LIABILITY),
            current_liabilities=_bucket(bs, Classification.BS_CURRENT_LIABILITY),
            equity=_bucket(bs, Classification.BS_EQUITY),
        )

        sheet.total_non_current_assets = total(sheet.non_current_assets)
        sheet.total_current_assets = total(sheet.current_assets)
        sheet.total_assets = sheet.total_non_current_assets + sheet.total_current_assets

        sheet.total_non_current_liabilities = total(sheet.non_current_liabilities)
        sheet.total_current_liabilities = total(sheet.current_liabilities)
        sheet.total_liabilities = (
            sheet.total_non_current_liabilities + sheet.total_current_liabilities
        )

        sheet.total_equity = total(sheet.equity)
        sheet.total_liabilities_and_equity = sheet.total_liabilities + sheet.total_equity

        logger.info(
            "Balance sheet: assets=%s liabilities=%s equity=%s",
            sheet.total_assets,
            sheet.total_liabilities,
            sheet.total_equity,
        )
        return sheet

    @staticmethod
    def build_income_statement(
        entries: Sequence[ClassifiedEntry],
    ) -> IncomeStatementData:
        pnl = [e for e in entries if e.report_section is ReportSection.PNL]

        stmt = IncomeStatementData(
            revenue=_bucket(pnl, Classification.PNL_REVENUE),
            cost_of_sales=_bucket(pnl, Classification.PNL_COST_OF_SALES),
            operating_expenses=_bucket(pnl, Classification.PNL_OPERATING_EXPENSE),
            finance_costs=_bucket(pnl, Classification.PNL_FINANCE_COST),
            taxation=_bucket(pnl, Classification.PNL_TAX),
        )

        # Revenue is stored as a credit; the absolute value is taken on the
        # bucket total, not per entry.
        stmt.total_revenue = abs(total(stmt.revenue))
        stmt.total_cost_of_sales = total(stmt.cost_of_sales)
        stmt.gross_profit = stmt.total_revenue - stmt.total_cost_of_sales

        stmt.total_operating_expenses = total(stmt.operating_expenses)
        stmt.operating_profit = stmt.gross_profit - stmt.total_operating_expenses

        stmt.total_finance_costs = total(stmt.finance_costs)
        stmt.profit_before_tax = stmt.operating_profit - stmt.total_finance_costs

        # Tax may be a charge or a credit; kept as stored.
        stmt.total_taxation = total(stmt.taxation)
        stmt.net_profit = stmt.profit_before_tax - stmt.total_taxation

        logger.info(
            "Income statement: revenue=%s gross=%s net=%s",
            stmt.total_revenue,
            stmt.gross_profit,
            stmt.net_profit,
        )
        return stmt

    @staticmethod
    def classification_summary(entries: Sequence[ClassifiedEntry]) -> Dict[str, Any]:
        """Counts shown on the classification review screen."""
        by_class = Counter(e.classification.value for e in entries)
        return {
            "total": len(entries),
            "unclassified": by_class.get(Classification.UNCLASSIFIED.value, 0),
            "balanceSheet": sum(
                1 for e in entries if e.report_section is ReportSection.BALANCE_SHEET
            ),
            "pnl": sum(1 for e in entries if e.report_section is ReportSection.PNL),
            "byClassification": {c.value: by_class.get(c.value, 0) for c in Classification},
        }
