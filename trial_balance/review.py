"""
Classification review helpers.

Entries the code rules cannot place stay ``unclassified`` and are flagged for
the user.  The reviewer attaches a suggestion to each of them by looking the
account *name* up in the synonym dictionary, then falling back to fuzzy
matching.  Suggestions are advisory; applying one is the caller's decision.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence

from trial_balance.config import ReviewConfig
from trial_balance.fuzzy_matcher import FuzzyMatcher
from trial_balance.logging_setup import get_logger
from trial_balance.normalizer import AmountNormalizer
from trial_balance.schema import Classification, ClassifiedEntry, ReviewSuggestion
from trial_balance.synonym_mapper import SynonymMapper

logger = get_logger("review")


class ClassificationReviewer:
    """Suggest classifications for unclassified entries.

    Parameters
    ----------
    config:
        Fuzzy thresholds and the on/off switch.
    extra_synonyms:
        Additional ``{account_name: classification}`` pairs.
    """

    def __init__(
        self,
        config: Optional[ReviewConfig] = None,
        extra_synonyms: Optional[Dict[str, str]] = None,
    ) -> None:
        self._config = config or ReviewConfig()
        self._normalizer = AmountNormalizer()
        self._synonyms = SynonymMapper(
            normalizer=self._normalizer,
            extra_synonyms=extra_synonyms,
        )
        self._fuzzy = self._build_fuzzy()

    def _build_fuzzy(self) -> FuzzyMatcher:
        return FuzzyMatcher(self._synonyms.all_synonyms(), config=self._config)

    def suggest_for_name(self, account_name: str) -> Optional[ReviewSuggestion]:
        """Suggestion for a bare account name (code left blank)."""
        return self._suggest("", account_name)

    def suggest(self, entries: Sequence[ClassifiedEntry]) -> List[ReviewSuggestion]:
        """One suggestion per unclassified entry that has a recognisable name."""
        if not self._config.enabled:
            return []

        suggestions: List[ReviewSuggestion] = []
        for e in entries:
            if e.classification is not Classification.UNCLASSIFIED:
                continue
            s = self._suggest(e.account_code, e.account_name)
            if s is not None:
                suggestions.append(s)

        logger.info("Review produced %d suggestion(s)", len(suggestions))
        return suggestions

    def _suggest(self, account_code: str, account_name: str) -> Optional[ReviewSuggestion]:
        norm = self._normalizer.normalize_label(account_name)
        if not norm:
            return None

        hit = self._synonyms.lookup(norm)
        if hit is not None:
            return ReviewSuggestion(
                account_code=account_code,
                account_name=account_name,
                classification=hit,
                confidence=100.0,
                match_method="synonym",
            )

        candidate = self._fuzzy.match(norm)
        if candidate is None:
            logger.debug("No suggestion for %r", account_name)
            return None
        return ReviewSuggestion(
            account_code=account_code,
            account_name=account_name,
            classification=candidate.classification,
            confidence=candidate.score,
            match_method="fuzzy",
            is_ambiguous=candidate.is_ambiguous,
        )

    # ------------------------------------------------------------------ #
    # Extension
    # ------------------------------------------------------------------ #

    def add_synonyms(self, mapping: Dict[str, str]) -> None:
        """Hot-add synonyms after construction."""
        self._synonyms.add_synonyms(mapping)
        self._fuzzy = self._build_fuzzy()

    def load_custom_synonyms(self, path: Path) -> int:
        count = self._synonyms.load_custom_synonyms(path)
        self._fuzzy = self._build_fuzzy()
        return count

    @property
    def synonym_count(self) -> int:
        return self._synonyms.size
