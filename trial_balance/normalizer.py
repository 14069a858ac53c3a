"""
Value Normalization Layer.

Transforms raw spreadsheet cells into clean, comparable values so that the
extractor and the review layer operate on uniform inputs.

Amount transformations applied (in order):
1. Strip leading / trailing whitespace
2. Currency symbols removed
3. Parenthetical and trailing-minus negatives → leading '-'
4. Thousands separators removed
5. ``Decimal`` conversion
"""

from __future__ import annotations

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Tuple

from trial_balance.logging_setup import get_logger

logger = get_logger("normalizer")

ZERO = Decimal("0")


class AmountNormalizer:
    """Stateless cell normaliser.  All methods are pure functions."""

    # Currency symbols / prefixes to strip from values
    _CURRENCY_RE = re.compile(r"[₹$€£¥]")

    # Parenthetical negative: ``(1234)`` → ``-1234``
    _PAREN_NEG_RE = re.compile(r"^\((.+)\)$")

    # Trailing minus as exported by some ledgers: ``1234-`` → ``-1234``
    _TRAILING_NEG_RE = re.compile(r"^([^-].*)-$")

    # Cells that spreadsheets use to show a zero balance
    _DASHES = {"-", "–", "—"}

    # Characters to remove from labels (keep letters, digits, spaces, hyphens)
    _PUNCT_RE = re.compile(r"[^a-z0-9\s\-&]")

    _MULTI_SPACE_RE = re.compile(r"\s+")

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def parse_amount(self, raw: Any) -> Tuple[Optional[Decimal], list[str]]:
        """Attempt to parse a numeric trial-balance value.

        Handles:
        * String numbers with thousands separators: ``"1,234.56"``
        * Currency prefixes: ``"$12,000"``
        * Parenthetical negatives: ``"(5,000)"``
        * Trailing-minus negatives: ``"5000-"``
        * A lone dash for zero: ``"-"``
        * Already-numeric inputs (int / float / Decimal)

        Returns
        -------
        tuple[Decimal | None, list[str]]
            (parsed_value, list_of_warnings).  ``None`` if parsing fails.
        """
        warnings: list[str] = []

        if raw is None:
            warnings.append("Value is None")
            return None, warnings

        if isinstance(raw, bool):
            warnings.append(f"Unexpected value type: {type(raw).__name__}")
            return None, warnings

        if isinstance(raw, Decimal):
            return raw, warnings

        if isinstance(raw, int):
            return Decimal(raw), warnings

        if isinstance(raw, float):
            if not math.isfinite(raw):
                warnings.append(f"Non-finite value: {raw!r}")
                return None, warnings
            return Decimal(str(raw)), warnings

        if not isinstance(raw, str):
            warnings.append(f"Unexpected value type: {type(raw).__name__}")
            return None, warnings

        text = raw.strip()
        if not text:
            warnings.append("Value is empty string")
            return None, warnings

        if text in self._DASHES:
            return ZERO, warnings

        text = self._CURRENCY_RE.sub("", text).strip()

        m = self._PAREN_NEG_RE.match(text)
        if m:
            text = "-" + m.group(1).strip()
        else:
            m = self._TRAILING_NEG_RE.match(text)
            if m:
                text = "-" + m.group(1).strip()

        text = text.replace(",", "").replace(" ", "")
        # Currency written after the sign: "-$5" → "-5"
        text = self._CURRENCY_RE.sub("", text)

        try:
            value = Decimal(text)
        except InvalidOperation:
            warnings.append(f"Cannot parse numeric value from: {raw!r}")
            return None, warnings

        if not value.is_finite():
            warnings.append(f"Non-finite value: {raw!r}")
            return None, warnings

        logger.debug("parse_amount: %r → %s", raw, value)
        return value, warnings

    def amount_or_zero(self, raw: Any) -> Tuple[Decimal, list[str]]:
        """Parse ``raw``, substituting zero when it cannot be parsed.

        Blank cells are a plain zero; only unparseable text is reported.
        """
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return ZERO, []
        value, warnings = self.parse_amount(raw)
        if value is None:
            return ZERO, warnings
        return value, warnings

    def normalize_label(self, raw: str) -> str:
        """Return the comparable form of an account name.

        Lowercased, punctuation stripped (``&`` and hyphens kept), whitespace
        collapsed.
        """
        text = raw.strip().lower()
        text = text.replace("–", "-").replace("—", "-")
        text = self._PUNCT_RE.sub(" ", text)
        text = self._MULTI_SPACE_RE.sub(" ", text).strip()

        logger.debug("normalize_label: %r → %r", raw, text)
        return text
