"""
Integration tests for the full TrialBalancePipeline.
"""

from __future__ import annotations

import io
import json
import logging
from decimal import Decimal
from pathlib import Path

import openpyxl
import pytest

from trial_balance.config import PipelineConfig, ReviewConfig
from trial_balance.pipeline import TrialBalancePipeline
from trial_balance.schema import Classification, ColumnMapping

TB_CSV = (
    "Account,Description,Prelim,Adj,Rep\n"
    "300 Property,Property,0,,0\n"
    "300.305 Furniture,Furniture,0,,0\n"
    "BDO-1,Desk,50,,50\n"
    "400.100,Cash,330,,330\n"
    "600.100,Trade payables,-30,,-30\n"
    "800.100,Share capital,-100,,-100\n"
    "700.100,Sales,-1000,,-1000\n"
    "750.720.100,Materials,400,,400\n"
    "750.750.100,Rent,250,50,300\n"
    "750.775.100,Interest,20,0,20\n"
    "750.795.100,Income tax,30,,30\n"
    ",Net income,,,\n"
    "999.1,Bank Charges,0,,0\n"
)


@pytest.fixture
def pipeline() -> TrialBalancePipeline:
    return TrialBalancePipeline(config=PipelineConfig(log_level=logging.WARNING))


@pytest.fixture
def strict_pipeline() -> TrialBalancePipeline:
    return TrialBalancePipeline(
        config=PipelineConfig(strict_mode=True, log_level=logging.WARNING)
    )


# ======================================================================
# Ingestion
# ======================================================================

class TestIngest:
    def test_csv_end_to_end(self, pipeline: TrialBalancePipeline) -> None:
        result = pipeline.ingest_csv(TB_CSV)
        assert result.success
        assert result.mapping == ColumnMapping(
            account_code="Account",
            account_name="Description",
            amount="Prelim",
            adjustments="Adj",
            final_amount="Rep",
        )
        codes = [e.account_code for e in result.entries]
        assert codes[:3] == ["300.305 Furniture", "BDO-1", "400.100"]
        assert len(codes) == 11
        assert result.skipped["parent_category"] == 1
        assert result.skipped["summary"] == 1

    def test_detail_line_inherits_parent(self, pipeline: TrialBalancePipeline) -> None:
        entries = {e.account_code: e for e in pipeline.ingest_csv(TB_CSV).entries}
        assert entries["BDO-1"].classification is Classification.BS_NON_CURRENT_ASSET
        assert entries["750.720.100"].classification is Classification.PNL_COST_OF_SALES
        assert entries["999.1"].classification is Classification.UNCLASSIFIED

    def test_zero_adjustment_absent(self, pipeline: TrialBalancePipeline) -> None:
        entries = {e.account_code: e for e in pipeline.ingest_csv(TB_CSV).entries}
        assert entries["750.750.100"].adjustments == Decimal("50")
        assert entries["750.750.100"].final_amount == Decimal("300")
        assert entries["750.775.100"].adjustments is None

    def test_unclassified_get_suggestions(self, pipeline: TrialBalancePipeline) -> None:
        result = pipeline.ingest_csv(TB_CSV)
        [s] = result.suggestions
        assert s.account_code == "999.1"
        assert s.classification is Classification.PNL_FINANCE_COST
        assert any("999.1" in w for w in result.validation_warnings)

    def test_review_disabled(self) -> None:
        pipe = TrialBalancePipeline(
            config=PipelineConfig(review=ReviewConfig(enabled=False), log_level=logging.WARNING)
        )
        assert pipe.ingest_csv(TB_CSV).suggestions == []

    def test_missing_amount_column(self, pipeline: TrialBalancePipeline) -> None:
        result = pipeline.ingest_csv("Account,Description\n400.100,Cash\n")
        assert not result.success
        assert result.entries == []
        assert any("amount" in e for e in result.validation_errors)

    def test_explicit_mapping(self, pipeline: TrialBalancePipeline) -> None:
        csv_text = "Code,Label,Value\n700.100,Sales,-10\n"
        mapping = ColumnMapping(account_code="Code", account_name="Label", amount="Value")
        [entry] = pipeline.ingest_csv(csv_text, mapping).entries
        assert entry.classification is Classification.PNL_REVENUE
        assert entry.final_amount == Decimal("-10")

    def test_unparseable_amount_warns(self, pipeline: TrialBalancePipeline) -> None:
        result = pipeline.ingest_csv("Account,Amount\n400.100,abc\n")
        assert result.success
        assert result.entries[0].final_amount == Decimal("0")
        assert any("Line 2" in w for w in result.validation_warnings)

    def test_excel(self, pipeline: TrialBalancePipeline) -> None:
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.append(["Account", "Description", "Balance"])
        ws.append(["400.100", "Cash", 125.5])
        ws.append(["600.100", "Payables", -125.5])
        buffer = io.BytesIO()
        wb.save(buffer)

        result = pipeline.ingest_excel(buffer.getvalue())
        assert result.success
        assert [e.final_amount for e in result.entries] == [Decimal("125.5"), Decimal("-125.5")]

    def test_to_dict_is_json_ready(self, pipeline: TrialBalancePipeline) -> None:
        d = pipeline.ingest_csv(TB_CSV).to_dict()
        json.dumps(d)
        assert d["success"] is True
        assert d["entries"][0]["classification"] == "bs_non_current_asset"


# ======================================================================
# Strict mode
# ======================================================================

class TestStrictMode:
    def test_raises_on_errors(self, strict_pipeline: TrialBalancePipeline) -> None:
        with pytest.raises(RuntimeError, match="Strict mode"):
            strict_pipeline.ingest_csv("Account,Description\n400.100,Cash\n")

    def test_warnings_do_not_raise(self, strict_pipeline: TrialBalancePipeline) -> None:
        assert strict_pipeline.ingest_csv(TB_CSV).success


# ======================================================================
# Preview
# ======================================================================

class TestPreview:
    def test_preview(self, pipeline: TrialBalancePipeline) -> None:
        headers = ["Account", "Description", "Prelim"]
        rows = [{"Account": str(i), "Description": "x", "Prelim": "1"} for i in range(8)]
        p = pipeline.preview(headers, rows)
        assert p["headers"] == headers
        assert p["mapping"]["accountCode"] == "Account"
        assert p["missing"] == []
        assert len(p["preview"]) == 5
        assert p["rowCount"] == 8

    def test_preview_reports_missing(self, pipeline: TrialBalancePipeline) -> None:
        p = pipeline.preview(["Description"], [])
        assert p["missing"] == ["amount"]


# ======================================================================
# Reports
# ======================================================================

class TestReports:
    def test_statements(self, pipeline: TrialBalancePipeline) -> None:
        report = pipeline.build_reports(pipeline.ingest_csv(TB_CSV).entries)
        bs = report.balance_sheet
        assert bs.total_non_current_assets == Decimal("50")
        assert bs.total_assets == Decimal("380")
        assert bs.total_liabilities_and_equity == Decimal("-130")

        pl = report.income_statement
        assert pl.total_revenue == Decimal("1000")
        assert pl.gross_profit == Decimal("600")
        assert pl.operating_profit == Decimal("300")
        assert pl.profit_before_tax == Decimal("280")
        assert pl.net_profit == Decimal("250")

    def test_summary_and_warnings(self, pipeline: TrialBalancePipeline) -> None:
        report = pipeline.build_reports(pipeline.ingest_csv(TB_CSV).entries)
        assert report.summary["total"] == 11
        assert report.summary["unclassified"] == 1
        assert len(report.validation_warnings) == 1

    def test_reclassify_is_stable(self, pipeline: TrialBalancePipeline) -> None:
        entries = pipeline.ingest_csv(TB_CSV).entries
        assert pipeline.reclassify(entries) == entries


# ======================================================================
# Synonyms
# ======================================================================

class TestSynonyms:
    def test_hot_add(self, pipeline: TrialBalancePipeline) -> None:
        before = pipeline.synonym_count
        pipeline.add_synonyms({"Cloud Hosting Fees": "pnl_operating_expense"})
        assert pipeline.synonym_count == before + 1

    def test_custom_synonym_file(self, tmp_path: Path) -> None:
        path = tmp_path / "synonyms.json"
        path.write_text(json.dumps({"Zorbl Widgets": "pnl_cost_of_sales"}), encoding="utf-8")
        pipe = TrialBalancePipeline(
            config=PipelineConfig(custom_synonym_path=path, log_level=logging.WARNING)
        )
        [s] = pipe.ingest_csv("Account,Description,Amount\nX9,Zorbl Widgets,5\n").suggestions
        assert s.classification is Classification.PNL_COST_OF_SALES
