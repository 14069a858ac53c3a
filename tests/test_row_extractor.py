"""
Unit tests for the RowExtractor.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional

import pytest

from trial_balance.config import ExtractionConfig
from trial_balance.row_extractor import (
    SKIP_EMPTY,
    SKIP_PARENT,
    SKIP_SUMMARY,
    RowExtractor,
)
from trial_balance.schema import ColumnMapping

FULL = ColumnMapping(
    account_code="Account",
    account_name="Description",
    amount="Prelim",
    adjustments="Adj",
    final_amount="Rep",
)

BASIC = ColumnMapping(account_code="Account", account_name="Description", amount="Prelim")


def _row(
    code: str = "",
    name: str = "",
    prelim: str = "",
    adj: Optional[str] = None,
    rep: Optional[str] = None,
) -> Dict[str, str]:
    row = {"Account": code, "Description": name, "Prelim": prelim}
    if adj is not None:
        row["Adj"] = adj
    if rep is not None:
        row["Rep"] = rep
    return row


@pytest.fixture
def extractor() -> RowExtractor:
    return RowExtractor()


# ======================================================================
# Amounts
# ======================================================================

class TestAmounts:
    def test_final_defaults_to_amount(self, extractor: RowExtractor) -> None:
        entries = extractor.extract([_row("400.100", "Cash", "100")], BASIC)
        assert len(entries) == 1
        e = entries[0]
        assert e.amount == Decimal("100")
        assert e.adjustments is None
        assert e.final_amount == Decimal("100")

    def test_final_is_amount_plus_adjustments(self, extractor: RowExtractor) -> None:
        mapping = ColumnMapping(
            account_code="Account", account_name="Description", amount="Prelim", adjustments="Adj"
        )
        entries = extractor.extract([_row("400.100", "Cash", "100", adj="-25")], mapping)
        assert entries[0].adjustments == Decimal("-25")
        assert entries[0].final_amount == Decimal("75")

    def test_mapped_final_column_wins(self, extractor: RowExtractor) -> None:
        entries = extractor.extract([_row("400.100", "Cash", "100", adj="5", rep="90")], FULL)
        assert entries[0].final_amount == Decimal("90")

    def test_zero_adjustment_becomes_absent(self, extractor: RowExtractor) -> None:
        entries = extractor.extract([_row("400.100", "Cash", "100", adj="0", rep="100")], FULL)
        assert entries[0].adjustments is None

    def test_unparseable_amount_is_zero_with_warning(self, extractor: RowExtractor) -> None:
        report = extractor.extract_with_report([_row("400.100", "Cash", "abc")], BASIC)
        assert report.entries[0].amount == Decimal("0")
        assert len(report.parse_warnings) == 1
        assert "Line 2" in report.parse_warnings[0]
        assert "Prelim" in report.parse_warnings[0]

    def test_formatted_amounts(self, extractor: RowExtractor) -> None:
        entries = extractor.extract([_row("600.100", "Payables", "(1,250.00)")], BASIC)
        assert entries[0].final_amount == Decimal("-1250.00")

    def test_codes_and_names_trimmed(self, extractor: RowExtractor) -> None:
        entries = extractor.extract([_row("  400.100 ", " Cash ", "1")], BASIC)
        assert entries[0].account_code == "400.100"
        assert entries[0].account_name == "Cash"


# ======================================================================
# Noise filtering
# ======================================================================

class TestNoiseRows:
    def test_blank_rows_skipped(self, extractor: RowExtractor) -> None:
        report = extractor.extract_with_report(
            [_row(), _row("400.100", "Cash", "1"), _row(prelim="99")], BASIC
        )
        assert len(report.entries) == 1
        assert report.skipped[SKIP_EMPTY] == 2

    def test_net_income_row_dropped(self, extractor: RowExtractor) -> None:
        report = extractor.extract_with_report([_row("", "Net Income", "12345")], BASIC)
        assert report.entries == []
        assert report.skipped[SKIP_SUMMARY] == 1

    def test_net_income_marker_case_insensitive(self, extractor: RowExtractor) -> None:
        entries = extractor.extract([_row("", "TOTAL NET INCOME FOR YEAR", "0")], BASIC)
        assert entries == []

    def test_net_income_with_code_kept(self, extractor: RowExtractor) -> None:
        entries = extractor.extract([_row("800.900", "Net income reserve", "-5")], BASIC)
        assert len(entries) == 1

    def test_name_only_row_kept(self, extractor: RowExtractor) -> None:
        entries = extractor.extract([_row("", "Suspense", "10")], BASIC)
        assert len(entries) == 1
        assert entries[0].account_code == ""

    def test_zero_parent_with_children_dropped(self, extractor: RowExtractor) -> None:
        rows = [
            _row("300.305 Furniture", "Furniture", "0"),
            _row("300.305.010", "Office chairs", "500"),
        ]
        report = extractor.extract_with_report(rows, BASIC)
        assert [e.account_code for e in report.entries] == ["300.305.010"]
        assert report.skipped[SKIP_PARENT] == 1

    def test_parent_with_balance_kept(self, extractor: RowExtractor) -> None:
        rows = [
            _row("300.305 Furniture", "Furniture", "10"),
            _row("300.305.010", "Office chairs", "500"),
        ]
        assert len(extractor.extract(rows, BASIC)) == 2

    def test_zero_parent_without_children_kept(self, extractor: RowExtractor) -> None:
        entries = extractor.extract([_row("300.305 Furniture", "Furniture", "0")], BASIC)
        assert len(entries) == 1

    def test_bdo_rows_never_treated_as_parents(self, extractor: RowExtractor) -> None:
        rows = [
            _row("300 BDO Assets", "Detail", "0"),
            _row("300.100", "Land", "100"),
        ]
        assert len(extractor.extract(rows, BASIC)) == 2

    def test_parent_suppression_can_be_disabled(self) -> None:
        extractor = RowExtractor(ExtractionConfig(suppress_parent_categories=False))
        rows = [
            _row("300.305 Furniture", "Furniture", "0"),
            _row("300.305.010", "Office chairs", "500"),
        ]
        assert len(extractor.extract(rows, BASIC)) == 2

    def test_input_order_preserved(self, extractor: RowExtractor) -> None:
        codes = ["700.100", "300.100", "BDO-1", "400.200"]
        rows: List[Dict[str, str]] = [_row(c, c, "1") for c in codes]
        assert [e.account_code for e in extractor.extract(rows, BASIC)] == codes


# ======================================================================
# Partial mappings
# ======================================================================

class TestMapping:
    def test_unmapped_amount_is_zero(self, extractor: RowExtractor) -> None:
        mapping = ColumnMapping(account_code="Account", account_name="Description")
        entries = extractor.extract([_row("400.100", "Cash", "100")], mapping)
        assert entries[0].amount == Decimal("0")
        assert entries[0].final_amount == Decimal("0")

    def test_unmapped_name_is_empty(self, extractor: RowExtractor) -> None:
        mapping = ColumnMapping(account_code="Account", amount="Prelim")
        entries = extractor.extract([_row("400.100", "Cash", "100")], mapping)
        assert entries[0].account_name == ""

    def test_missing_cell_treated_as_blank(self, extractor: RowExtractor) -> None:
        entries = extractor.extract([{"Account": "400.100"}], FULL)
        assert entries[0].amount == Decimal("0")
        assert entries[0].adjustments is None
