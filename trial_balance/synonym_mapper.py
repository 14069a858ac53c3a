"""
Account-Name Synonym Dictionary.

A curated mapping from commonly-seen account names to the classification
they usually belong to.  It is used only to *suggest* a classification for
entries the code rules left unclassified; it never overrides the classifier.

Design decisions
----------------
* Keys are stored **normalised** (lowercase, punctuation stripped) so that a
  single normalisation pass on the account name is sufficient for lookup.
* Users can extend at runtime via ``load_custom_synonyms`` (JSON file) or
  ``add_synonym`` / ``add_synonyms``.  Values may be classification tags
  (``"bs_current_asset"``) or labels (``"Current Assets"``).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Optional

from trial_balance.logging_setup import get_logger
from trial_balance.normalizer import AmountNormalizer
from trial_balance.schema import Classification, classification_lookup

logger = get_logger("synonym_mapper")

_NCA = Classification.BS_NON_CURRENT_ASSET
_CA = Classification.BS_CURRENT_ASSET
_NCL = Classification.BS_NON_CURRENT_LIABILITY
_CL = Classification.BS_CURRENT_LIABILITY
_EQ = Classification.BS_EQUITY
_REV = Classification.PNL_REVENUE
_COS = Classification.PNL_COST_OF_SALES
_OPEX = Classification.PNL_OPERATING_EXPENSE
_FIN = Classification.PNL_FINANCE_COST
_TAX = Classification.PNL_TAX


# ---------------------------------------------------------------------------
# Built-in synonym dictionary
# ---------------------------------------------------------------------------
# Convention: key = normalised account name, value = classification.

_BUILTIN_SYNONYMS: Dict[str, Classification] = {
    # --- Non-current assets ---
    "land": _NCA,
    "land and buildings": _NCA,
    "buildings": _NCA,
    "property plant and equipment": _NCA,
    "plant and machinery": _NCA,
    "furniture and fittings": _NCA,
    "furniture": _NCA,
    "motor vehicles": _NCA,
    "computer equipment": _NCA,
    "office equipment": _NCA,
    "accumulated depreciation": _NCA,
    "intangible assets": _NCA,
    "goodwill": _NCA,
    "long term investments": _NCA,
    "right of use assets": _NCA,

    # --- Current assets ---
    "cash": _CA,
    "cash at bank": _CA,
    "cash on hand": _CA,
    "petty cash": _CA,
    "bank": _CA,
    "trade receivables": _CA,
    "trade debtors": _CA,
    "accounts receivable": _CA,
    "debtors": _CA,
    "other receivables": _CA,
    "prepayments": _CA,
    "deposits paid": _CA,
    "inventory": _CA,
    "inventories": _CA,
    "stock": _CA,
    "vat receivable": _CA,

    # --- Non-current liabilities ---
    "long term loans": _NCL,
    "long term borrowings": _NCL,
    "term loan": _NCL,
    "bank loan": _NCL,
    "shareholder loan": _NCL,
    "loans from directors": _NCL,
    "lease liabilities": _NCL,
    "deferred tax liability": _NCL,

    # --- Current liabilities ---
    "trade payables": _CL,
    "trade creditors": _CL,
    "accounts payable": _CL,
    "creditors": _CL,
    "accruals": _CL,
    "accrued expenses": _CL,
    "other payables": _CL,
    "vat payable": _CL,
    "income tax payable": _CL,
    "bank overdraft": _CL,
    "deposits received": _CL,

    # --- Equity ---
    "share capital": _EQ,
    "ordinary share capital": _EQ,
    "retained earnings": _EQ,
    "retained income": _EQ,
    "accumulated profits": _EQ,
    "reserves": _EQ,
    "capital account": _EQ,
    "drawings": _EQ,

    # --- Revenue ---
    "sales": _REV,
    "revenue": _REV,
    "turnover": _REV,
    "service income": _REV,
    "fees received": _REV,
    "commission received": _REV,
    "other income": _REV,
    "rental income": _REV,

    # --- Cost of sales ---
    "cost of sales": _COS,
    "cost of goods sold": _COS,
    "purchases": _COS,
    "materials": _COS,
    "direct labour": _COS,
    "opening stock": _COS,
    "closing stock": _COS,
    "carriage inwards": _COS,

    # --- Operating expenses ---
    "salaries and wages": _OPEX,
    "salaries": _OPEX,
    "wages": _OPEX,
    "rent": _OPEX,
    "electricity": _OPEX,
    "telephone": _OPEX,
    "insurance": _OPEX,
    "depreciation": _OPEX,
    "repairs and maintenance": _OPEX,
    "advertising": _OPEX,
    "audit fees": _OPEX,
    "accounting fees": _OPEX,
    "legal fees": _OPEX,
    "office expenses": _OPEX,
    "travel": _OPEX,
    "motor expenses": _OPEX,
    "stationery": _OPEX,
    "entertainment": _OPEX,

    # --- Finance costs ---
    "interest paid": _FIN,
    "interest expense": _FIN,
    "bank charges": _FIN,
    "finance costs": _FIN,
    "finance charges": _FIN,
    "loan interest": _FIN,

    # --- Taxation ---
    "income tax": _TAX,
    "income tax expense": _TAX,
    "taxation": _TAX,
    "deferred tax": _TAX,
    "current tax": _TAX,
}


class SynonymMapper:
    """Lookup engine backed by the built-in dictionary plus user additions.

    Parameters
    ----------
    normalizer:
        Used to normalise keys added at runtime.
    extra_synonyms:
        ``{account_name: classification}`` merged on top of the built-ins.
    """

    def __init__(
        self,
        normalizer: Optional[AmountNormalizer] = None,
        extra_synonyms: Optional[Dict[str, str]] = None,
    ) -> None:
        self._normalizer = normalizer or AmountNormalizer()
        self._dict: Dict[str, Classification] = dict(_BUILTIN_SYNONYMS)
        if extra_synonyms:
            self.add_synonyms(extra_synonyms)
        logger.debug("SynonymMapper ready with %d entries", len(self._dict))

    def lookup(self, normalised_name: str) -> Optional[Classification]:
        """Return the classification if the normalised name is in the dictionary."""
        result = self._dict.get(normalised_name)
        if result is not None:
            logger.info("Synonym hit: %r → %s", normalised_name, result.value)
        return result

    # ------------------------------------------------------------------ #
    # Extension API
    # ------------------------------------------------------------------ #

    def add_synonym(self, variant: str, classification: str) -> None:
        """Register a single new synonym.

        Raises
        ------
        ValueError
            If ``classification`` is not a recognised tag or label, or is
            ``unclassified``.
        """
        target = classification_lookup(str(classification))
        if target is None or target is Classification.UNCLASSIFIED:
            raise ValueError(
                f"Unknown classification {classification!r}. "
                f"Must be one of the Classification tags or labels."
            )

        nk = self._normalizer.normalize_label(variant)
        if nk in self._dict and self._dict[nk] is not target:
            logger.warning(
                "Overwriting synonym %r: %s → %s",
                nk,
                self._dict[nk].value,
                target.value,
            )
        self._dict[nk] = target
        logger.debug("Added synonym: %r → %s", nk, target.value)

    def add_synonyms(self, mapping: Dict[str, str]) -> None:
        """Bulk-add synonyms from a ``{variant: classification}`` dict."""
        for variant, classification in mapping.items():
            self.add_synonym(variant, classification)

    def load_custom_synonyms(self, path: Path) -> int:
        """Load synonyms from a JSON file (``{variant: classification}``).

        Returns the number of entries added.
        """
        with open(path, encoding="utf-8") as fh:
            data: Dict[str, str] = json.load(fh)
        self.add_synonyms(data)
        logger.info("Loaded %d custom synonyms from %s", len(data), path)
        return len(data)

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    @property
    def size(self) -> int:
        return len(self._dict)

    def all_synonyms(self) -> Dict[str, Classification]:
        """Return a *copy* of the internal dictionary."""
        return dict(self._dict)
