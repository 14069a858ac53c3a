"""
Unit tests for the Validator.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from trial_balance.config import ValidationConfig
from trial_balance.schema import Classification, ClassifiedEntry, ColumnMapping
from trial_balance.validator import ValidationReport, Validator


def _make_entry(
    code: str = "400.100",
    classification: Classification = Classification.BS_CURRENT_ASSET,
    final: str = "100",
    name: str = "Cash",
) -> ClassifiedEntry:
    return ClassifiedEntry(
        account_code=code,
        account_name=name,
        amount=Decimal(final),
        adjustments=None,
        final_amount=Decimal(final),
        classification=classification,
        report_section=classification.default_section,
    )


@pytest.fixture
def validator() -> Validator:
    return Validator(config=ValidationConfig())


@pytest.fixture
def quiet_validator() -> Validator:
    return Validator(config=ValidationConfig(
        check_sign_convention=False,
        check_balance=False,
        warn_on_unclassified=False,
    ))


# ======================================================================
# Mapping
# ======================================================================

class TestMapping:
    def test_complete_mapping_valid(self, validator: Validator) -> None:
        report = validator.validate_mapping(ColumnMapping(account_code="A", amount="B"))
        assert report.is_valid

    def test_missing_fields_are_errors(self, validator: Validator) -> None:
        report = validator.validate_mapping(ColumnMapping(account_name="N"))
        assert not report.is_valid
        assert report.errors == [
            "Required column not mapped: accountCode",
            "Required column not mapped: amount",
        ]


# ======================================================================
# Unclassified entries
# ======================================================================

class TestUnclassified:
    def test_unclassified_warned(self, validator: Validator) -> None:
        report = validator.validate_entries(
            [_make_entry("XYZ", Classification.UNCLASSIFIED, "0", name="")]
        )
        assert any("Unclassified entry 'XYZ' (no name)" in w for w in report.warnings)
        assert report.is_valid

    def test_can_be_silenced(self, quiet_validator: Validator) -> None:
        report = quiet_validator.validate_entries(
            [_make_entry("XYZ", Classification.UNCLASSIFIED, "0")]
        )
        assert report.warnings == []


# ======================================================================
# Sign convention
# ======================================================================

class TestSigns:
    def test_positive_liability_warned(self, validator: Validator) -> None:
        report = validator.validate_entries(
            [_make_entry("600.100", Classification.BS_CURRENT_LIABILITY, "50")]
        )
        assert any("not negative" in w for w in report.warnings)

    def test_negative_expense_warned(self, validator: Validator) -> None:
        report = validator.validate_entries(
            [_make_entry("750.750", Classification.PNL_OPERATING_EXPENSE, "-50")]
        )
        assert any("not positive" in w for w in report.warnings)

    def test_assets_any_sign(self, validator: Validator) -> None:
        # Accumulated depreciation is a negative asset.
        report = validator.validate_entries([
            _make_entry("300.100", Classification.BS_NON_CURRENT_ASSET, "-40"),
            _make_entry("800.100", Classification.BS_EQUITY, "40"),
        ])
        assert not any("300.100" in w for w in report.warnings)

    def test_zero_never_warned(self, validator: Validator) -> None:
        entry = _make_entry("700.100", Classification.PNL_REVENUE, "0")
        assert entry.sign_convention_holds
        assert validator.validate_entries([entry]).warnings == []


# ======================================================================
# Balance and magnitude
# ======================================================================

class TestBalance:
    def test_balanced_trial_balance(self, validator: Validator) -> None:
        report = validator.validate_entries([
            _make_entry("400.100", Classification.BS_CURRENT_ASSET, "100"),
            _make_entry("800.100", Classification.BS_EQUITY, "-100"),
        ])
        assert report.warnings == []

    def test_imbalance_warned(self, validator: Validator) -> None:
        report = validator.validate_entries([
            _make_entry("400.100", Classification.BS_CURRENT_ASSET, "100"),
            _make_entry("800.100", Classification.BS_EQUITY, "-90"),
        ])
        assert any("do not balance" in w for w in report.warnings)

    def test_within_tolerance(self, validator: Validator) -> None:
        report = validator.validate_entries([
            _make_entry("400.100", Classification.BS_CURRENT_ASSET, "100.005"),
            _make_entry("800.100", Classification.BS_EQUITY, "-100"),
        ])
        assert not any("balance" in w for w in report.warnings)

    def test_unclassified_ignored_for_balance(self, validator: Validator) -> None:
        report = validator.validate_entries([
            _make_entry("400.100", Classification.BS_CURRENT_ASSET, "100"),
            _make_entry("800.100", Classification.BS_EQUITY, "-100"),
            _make_entry("XYZ", Classification.UNCLASSIFIED, "5"),
        ])
        assert not any("balance" in w for w in report.warnings)

    def test_magnitude(self, validator: Validator) -> None:
        report = validator.validate_entries([
            _make_entry("400.100", Classification.BS_CURRENT_ASSET, "1e16"),
            _make_entry("800.100", Classification.BS_EQUITY, "-1e16"),
        ])
        assert sum("max_absolute_value" in w for w in report.warnings) == 2

    def test_parse_warnings_forwarded(self, validator: Validator) -> None:
        report = validator.validate_entries([], parse_warnings=["Line 3: bad"])
        assert report.warnings == ["Line 3: bad"]


class TestReport:
    def test_collects_errors_and_warnings(self) -> None:
        report = ValidationReport()
        report.add_error("e1")
        report.add_warning("w1")
        assert report.errors == ["e1"]
        assert report.warnings == ["w1"]
        assert not report.is_valid

    def test_warnings_alone_are_valid(self) -> None:
        report = ValidationReport()
        report.add_warning("w1")
        assert report.is_valid
