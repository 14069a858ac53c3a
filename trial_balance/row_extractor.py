"""
Row Extraction Layer.

Turns raw spreadsheet rows into ``Entry`` records using a ``ColumnMapping``,
dropping rows that are not postable accounts:

* blank rows (no account code and no account name),
* summary lines such as "Net Income" that carry no account code,
* zero-balance parent category headers (``"300.305 Furniture"``) whose
  children appear elsewhere in the file (``"300.305.010"`` ...).

Cells that cannot be parsed as numbers count as zero; every such
substitution is recorded as a warning on the ``ExtractionReport``.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import List, Mapping, Optional, Sequence

from trial_balance.config import ExtractionConfig
from trial_balance.logging_setup import get_logger
from trial_balance.normalizer import ZERO, AmountNormalizer
from trial_balance.schema import ColumnMapping, Entry, ExtractionReport

logger = get_logger("row_extractor")

RawRow = Mapping[str, Optional[str]]

# Three-digit category code, optional dot-separated groups, then a space:
# "300 Assets", "300.305 Furniture".
PARENT_CATEGORY_RE = re.compile(r"^\d{3}(\.\d+)*\s")

SKIP_EMPTY = "empty"
SKIP_SUMMARY = "summary"
SKIP_PARENT = "parent_category"


def _cell(row: RawRow, column: Optional[str]) -> str:
    if not column:
        return ""
    value = row.get(column)
    return value.strip() if value else ""


class RowExtractor:
    """Extract clean entries from mapped rows.

    Parameters
    ----------
    config:
        Noise-filtering markers.
    normalizer:
        Amount parser; a fresh ``AmountNormalizer`` by default.
    """

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        normalizer: Optional[AmountNormalizer] = None,
    ) -> None:
        self._config = config or ExtractionConfig()
        self._normalizer = normalizer or AmountNormalizer()

    def extract(self, rows: Sequence[RawRow], mapping: ColumnMapping) -> List[Entry]:
        """Return entries for ``rows`` in input order."""
        return self.extract_with_report(rows, mapping).entries

    def extract_with_report(
        self, rows: Sequence[RawRow], mapping: ColumnMapping
    ) -> ExtractionReport:
        """Like ``extract`` but also reports skipped rows and parse fallbacks."""
        report = ExtractionReport(
            skipped={SKIP_EMPTY: 0, SKIP_SUMMARY: 0, SKIP_PARENT: 0},
        )
        all_codes = [_cell(r, mapping.account_code) for r in rows]

        # Header row is line 1 of the source file.
        for line_no, row in enumerate(rows, start=2):
            entry = self._extract_row(line_no, row, mapping, all_codes, report)
            if entry is not None:
                report.entries.append(entry)

        logger.info(
            "Extracted %d entries from %d rows (skipped: %s)",
            len(report.entries),
            len(rows),
            report.skipped,
        )
        return report

    # ------------------------------------------------------------------ #
    # Per-row policy
    # ------------------------------------------------------------------ #

    def _extract_row(
        self,
        line_no: int,
        row: RawRow,
        mapping: ColumnMapping,
        all_codes: Sequence[str],
        report: ExtractionReport,
    ) -> Optional[Entry]:
        account_code = _cell(row, mapping.account_code)
        account_name = _cell(row, mapping.account_name)

        if not account_code and not account_name:
            report.skipped[SKIP_EMPTY] += 1
            return None

        if not account_code and self._is_summary_name(account_name):
            logger.debug("Line %d: summary row %r skipped", line_no, account_name)
            report.skipped[SKIP_SUMMARY] += 1
            return None

        amount = self._amount(line_no, row, mapping.amount, report)

        adjustments: Optional[Decimal] = None
        if mapping.adjustments:
            adjustments = self._amount(line_no, row, mapping.adjustments, report)
            if adjustments == 0:
                adjustments = None

        if mapping.final_amount:
            final_amount = self._amount(line_no, row, mapping.final_amount, report)
        else:
            final_amount = amount + (adjustments or ZERO)

        if (
            self._config.suppress_parent_categories
            and amount == 0
            and final_amount == 0
            and self._is_parent_with_children(account_code, all_codes)
        ):
            logger.debug("Line %d: parent category %r skipped", line_no, account_code)
            report.skipped[SKIP_PARENT] += 1
            return None

        return Entry(
            account_code=account_code,
            account_name=account_name,
            amount=amount,
            adjustments=adjustments,
            final_amount=final_amount,
        )

    def _amount(
        self,
        line_no: int,
        row: RawRow,
        column: Optional[str],
        report: ExtractionReport,
    ) -> Decimal:
        if not column:
            return ZERO
        value, warnings = self._normalizer.amount_or_zero(row.get(column))
        for w in warnings:
            msg = f"Line {line_no}, column '{column}': {w}; using 0"
            report.parse_warnings.append(msg)
            logger.warning(msg)
        return value

    def _is_summary_name(self, account_name: str) -> bool:
        lower = account_name.lower()
        return any(m in lower for m in self._config.summary_row_markers)

    def _is_parent_with_children(
        self, account_code: str, all_codes: Sequence[str]
    ) -> bool:
        if self._config.detail_code_prefix in account_code:
            return False
        if not PARENT_CATEGORY_RE.match(account_code):
            return False
        child_prefix = account_code.split(" ")[0] + "."
        return any(code.startswith(child_prefix) for code in all_codes)
