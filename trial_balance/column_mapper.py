"""
Column Mapping Layer.

Infers which raw spreadsheet header feeds each semantic field of an entry.
The result pre-fills a user-editable mapping, so inference is best-effort
and never fails: a field nobody matches simply stays unmapped.

Rules are evaluated per field, in field order:

    accountCode  →  accountName  →  amount  →  adjustments  →  finalAmount

For each field the headers are scanned left to right and the first header
whose lower-cased text contains one of the field's keywords wins.  Fields
are inferred independently, so one header may be picked for two fields when
it contains keywords from both lists (e.g. ``"Account Balance"``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from trial_balance.config import MappingConfig
from trial_balance.logging_setup import get_logger
from trial_balance.schema import ColumnMapping

logger = get_logger("column_mapper")


@dataclass(frozen=True)
class HeaderRule:
    """Keyword predicate for one semantic field."""

    field: str
    keywords: Tuple[str, ...]
    exclusions: Tuple[str, ...] = ()
    fallback_to_first: bool = False

    def matches(self, lower_header: str) -> bool:
        if any(x in lower_header for x in self.exclusions):
            return False
        return any(k in lower_header for k in self.keywords)


class ColumnMapper:
    """Infer a ``ColumnMapping`` from an ordered list of headers.

    Parameters
    ----------
    config:
        Keyword lists per field.  Defaults match common trial-balance
        exports ("Account", "Description", "Prelim", "Adj", "Rep" ...).
    """

    def __init__(self, config: Optional[MappingConfig] = None) -> None:
        self._config = config or MappingConfig()
        c = self._config
        self._rules: List[HeaderRule] = [
            HeaderRule(
                "account_code",
                c.account_code_keywords,
                fallback_to_first=c.account_code_falls_back_to_first,
            ),
            HeaderRule("account_name", c.account_name_keywords),
            HeaderRule("amount", c.amount_keywords),
            HeaderRule("adjustments", c.adjustments_keywords),
            HeaderRule(
                "final_amount",
                c.final_amount_keywords,
                exclusions=c.final_amount_exclusions,
            ),
        ]

    def infer(self, headers: Sequence[str]) -> ColumnMapping:
        """Return the best-guess mapping for ``headers``."""
        lower = [h.lower() for h in headers]
        mapping = ColumnMapping()

        for rule in self._rules:
            chosen = self._first_match(rule, headers, lower)
            if chosen is None and rule.fallback_to_first and headers and headers[0]:
                chosen = headers[0]
                logger.info(
                    "No header looks like %s; falling back to first column %r",
                    ColumnMapping.FIELDS[rule.field],
                    chosen,
                )
            setattr(mapping, rule.field, chosen)

        missing = mapping.missing_required()
        logger.info(
            "Inferred column mapping %s (missing required: %s)",
            mapping.to_dict(),
            ", ".join(missing) or "none",
        )
        return mapping

    @staticmethod
    def _first_match(
        rule: HeaderRule, headers: Sequence[str], lower: Sequence[str]
    ) -> Optional[str]:
        for header, lower_header in zip(headers, lower):
            if rule.matches(lower_header):
                logger.debug("Header %r → %s", header, rule.field)
                return header
        return None
