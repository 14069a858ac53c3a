"""
Validation Layer.

Checks the quality of a mapping and of classified entries *before* they are
handed to the entry store or the renderers.  Nothing here raises: problems
are collected on a ``ValidationReport`` and surfaced for review.

Checks performed
----------------
1. **Required columns**: ``accountCode`` and ``amount`` must be mapped;
   missing ones are errors and block extraction.
2. **Parse fallbacks**: cells that were read as zero because they could not
   be parsed.
3. **Unclassified entries**: rows no rule could classify.
4. **Sign convention**: credits (liabilities, equity, revenue) negative,
   expenses positive.
5. **Balance**: classified entries of a trial balance net to zero.
6. **Magnitude**: values beyond a plausible range (unit errors).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional, Sequence

from trial_balance.config import ValidationConfig
from trial_balance.logging_setup import get_logger
from trial_balance.schema import Classification, ClassifiedEntry, ColumnMapping

logger = get_logger("validator")


class ValidationReport:
    """Accumulates errors and warnings during a validation pass."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)
        logger.error("Validation ERROR: %s", msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)
        logger.warning("Validation WARNING: %s", msg)


class Validator:
    """Validates mappings and classified entries.

    Parameters
    ----------
    config:
        Validation thresholds and behaviour flags.
    """

    def __init__(self, config: Optional[ValidationConfig] = None) -> None:
        self._config = config or ValidationConfig()

    def validate_mapping(self, mapping: ColumnMapping) -> ValidationReport:
        """Errors for every required field left unmapped."""
        report = ValidationReport()
        for name in mapping.missing_required():
            report.add_error(f"Required column not mapped: {name}")
        return report

    def validate_entries(
        self,
        entries: Sequence[ClassifiedEntry],
        parse_warnings: Iterable[str] = (),
    ) -> ValidationReport:
        """Run all entry-level checks and return a ``ValidationReport``."""
        report = ValidationReport()
        for w in parse_warnings:
            report.warnings.append(w)
        self._check_unclassified(entries, report)
        self._check_signs(entries, report)
        self._check_magnitude(entries, report)
        self._check_balance(entries, report)
        return report

    # ------------------------------------------------------------------ #
    # Individual checks
    # ------------------------------------------------------------------ #

    def _check_unclassified(
        self, entries: Sequence[ClassifiedEntry], report: ValidationReport
    ) -> None:
        if not self._config.warn_on_unclassified:
            return
        for e in entries:
            if e.classification is Classification.UNCLASSIFIED:
                report.add_warning(
                    f"Unclassified entry '{e.account_code}' ({e.account_name or 'no name'})"
                )

    def _check_signs(
        self, entries: Sequence[ClassifiedEntry], report: ValidationReport
    ) -> None:
        if not self._config.check_sign_convention:
            return
        for e in entries:
            if not e.sign_convention_holds:
                expected = "negative" if e.classification.expected_sign < 0 else "positive"
                report.add_warning(
                    f"'{e.account_code}' is classified as {e.classification.label} "
                    f"but its final amount {e.final_amount} is not {expected}"
                )

    def _check_magnitude(
        self, entries: Sequence[ClassifiedEntry], report: ValidationReport
    ) -> None:
        limit = self._config.max_absolute_value
        for e in entries:
            if abs(e.final_amount) > limit:
                report.add_warning(
                    f"'{e.account_code}' final amount {e.final_amount} exceeds "
                    f"max_absolute_value ({limit}). Possible unit error?"
                )

    def _check_balance(
        self, entries: Sequence[ClassifiedEntry], report: ValidationReport
    ) -> None:
        if not self._config.check_balance or not entries:
            return
        net = sum(
            (
                e.final_amount
                for e in entries
                if e.classification is not Classification.UNCLASSIFIED
            ),
            Decimal("0"),
        )
        if abs(net) > self._config.balance_tolerance:
            report.add_warning(
                f"Classified entries do not balance: net difference {net}"
            )
