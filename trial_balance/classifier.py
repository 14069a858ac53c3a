"""
Account Classification Layer.

Assigns every entry a ``Classification`` and ``ReportSection``.

Single codes are classified against an ordered list of prefix rules; the
first matching rule wins, so specific prefixes (``750.720``) must precede
the generic ones (``750``) they overlap with.

Sequences are classified with a left-to-right fold that carries the last
parent classification:

* parent category rows (``"300.305 Furniture"``) classify their numeric
  token and become the new parent;
* ``BDO`` detail lines have no classifiable code and inherit the parent;
* any other row classifies its own code and becomes the new parent when
  that succeeds.

Row order is therefore part of the input: reordering rows can change the
result.  The output depends only on the ordered account codes, so
re-running the classifier over its own output is a no-op.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence, Tuple

from trial_balance.logging_setup import get_logger
from trial_balance.row_extractor import PARENT_CATEGORY_RE
from trial_balance.schema import (
    UNCLASSIFIED_RESULT,
    Classification,
    ClassificationResult,
    ClassifiedEntry,
    Entry,
    ReportSection,
)

logger = get_logger("classifier")


@dataclass(frozen=True)
class ClassificationRule:
    """Account-code prefix → classification."""

    pattern: Pattern[str]
    classification: Classification
    report_section: ReportSection

    def matches(self, code: str) -> bool:
        return self.pattern.match(code) is not None


def _rule(prefix: str, classification: Classification) -> ClassificationRule:
    return ClassificationRule(
        pattern=re.compile("^" + re.escape(prefix)),
        classification=classification,
        report_section=classification.default_section,
    )


# Order matters: the 750.xxx rules must be tested before the 750 fallback.
DEFAULT_RULES: Tuple[ClassificationRule, ...] = (
    # Balance sheet: assets
    _rule("300", Classification.BS_NON_CURRENT_ASSET),
    _rule("400", Classification.BS_CURRENT_ASSET),
    # Balance sheet: liabilities
    _rule("500", Classification.BS_NON_CURRENT_LIABILITY),
    _rule("600", Classification.BS_CURRENT_LIABILITY),
    # Balance sheet: equity
    _rule("800", Classification.BS_EQUITY),
    # Income statement
    _rule("700", Classification.PNL_REVENUE),
    _rule("750.720", Classification.PNL_COST_OF_SALES),
    _rule("750.750", Classification.PNL_OPERATING_EXPENSE),
    _rule("750.775", Classification.PNL_FINANCE_COST),
    _rule("750.795", Classification.PNL_TAX),
    _rule("750", Classification.PNL_OPERATING_EXPENSE),
)


class Classifier:
    """Rule-based classifier with parent inheritance.

    Parameters
    ----------
    rules:
        Ordered prefix rules.  Defaults to ``DEFAULT_RULES``.
    detail_code_prefix:
        Prefix of sub-ledger detail lines that inherit their parent.
    """

    def __init__(
        self,
        rules: Optional[Sequence[ClassificationRule]] = None,
        detail_code_prefix: str = "BDO",
    ) -> None:
        self._rules: Tuple[ClassificationRule, ...] = tuple(rules or DEFAULT_RULES)
        self._detail_prefix = detail_code_prefix

    # ------------------------------------------------------------------ #
    # Single code
    # ------------------------------------------------------------------ #

    def classify_one(self, code: str) -> ClassificationResult:
        """Classify a single account code by the first matching rule."""
        clean = code.strip()
        for rule in self._rules:
            if rule.matches(clean):
                return rule.classification, rule.report_section
        return UNCLASSIFIED_RESULT

    # ------------------------------------------------------------------ #
    # Sequence
    # ------------------------------------------------------------------ #

    def step(
        self, state: ClassificationResult, entry: Entry
    ) -> Tuple[ClassificationResult, ClassificationResult]:
        """One fold step: ``(parent_state, entry) → (new_state, result)``."""
        code = entry.account_code

        if PARENT_CATEGORY_RE.match(code):
            result = self.classify_one(code.split(" ")[0])
            return result, result

        if code.startswith(self._detail_prefix):
            return state, state

        result = self.classify_one(code)
        if result[0] is not Classification.UNCLASSIFIED:
            return result, result
        return state, result

    def classify(self, entries: Sequence[Entry]) -> List[ClassifiedEntry]:
        """Classify ``entries`` in order; one output per input."""
        state: ClassificationResult = UNCLASSIFIED_RESULT
        classified: List[ClassifiedEntry] = []

        for entry in entries:
            state, (classification, section) = self.step(state, entry)
            classified.append(self._attach(entry, classification, section))

        unclassified = sum(
            1 for e in classified if e.classification is Classification.UNCLASSIFIED
        )
        logger.info(
            "Classified %d entries (%d unclassified)", len(classified), unclassified
        )
        return classified

    def reclassify(self, entries: Sequence[ClassifiedEntry]) -> List[ClassifiedEntry]:
        """Re-run classification from account codes alone.

        Prior classifications are ignored; store metadata is kept.
        """
        return self.classify(entries)

    @staticmethod
    def _attach(
        entry: Entry, classification: Classification, section: ReportSection
    ) -> ClassifiedEntry:
        if isinstance(entry, ClassifiedEntry):
            return entry.with_classification(classification, section)
        return ClassifiedEntry.from_entry(entry, classification, section)
