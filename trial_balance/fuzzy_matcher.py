"""
Fuzzy Matching Layer.

When the synonym dictionary produces no hit for an account name, this layer
uses ``rapidfuzz`` to find the closest known name.  Results are
confidence-gated:

* Matches **below** ``fuzzy_threshold`` are rejected outright.
* If the runner-up is within ``fuzzy_ambiguity_delta`` of the best match and
  points at a *different* classification, the result is flagged ambiguous.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from rapidfuzz import fuzz, process

from trial_balance.config import ReviewConfig
from trial_balance.logging_setup import get_logger
from trial_balance.schema import Classification

logger = get_logger("fuzzy_matcher")


@dataclass
class FuzzyCandidate:
    """A single candidate returned by the fuzzy matcher."""

    matched_name: str
    classification: Classification
    score: float  # 0–100
    is_ambiguous: bool = False


class FuzzyMatcher:
    """Fuzzy-match a normalised account name against known names.

    Parameters
    ----------
    targets:
        ``{normalised_name: classification}`` to match against, typically
        ``SynonymMapper.all_synonyms()``.
    config:
        Matching thresholds.
    """

    def __init__(
        self,
        targets: Dict[str, Classification],
        config: Optional[ReviewConfig] = None,
    ) -> None:
        self._config = config or ReviewConfig()
        self._targets = dict(targets)
        # Pre-computed list for rapidfuzz ``process.extract``
        self._target_keys: List[str] = list(self._targets.keys())

    def match(self, normalised_name: str) -> Optional[FuzzyCandidate]:
        """Find the best match for *normalised_name*.

        Returns
        -------
        FuzzyCandidate | None
            Best match above threshold, or ``None`` if nothing qualifies.
        """
        if not normalised_name or not self._target_keys:
            return None

        # token_sort_ratio is robust against word order
        # ("expenses office" vs "office expenses").
        results = process.extract(
            normalised_name,
            self._target_keys,
            scorer=fuzz.token_sort_ratio,
            limit=5,
        )
        if not results:
            return None

        best_key, best_score, _ = results[0]
        if best_score < self._config.fuzzy_threshold:
            logger.debug(
                "Fuzzy best for %r is %r (%.1f), below threshold %.1f",
                normalised_name,
                best_key,
                best_score,
                self._config.fuzzy_threshold,
            )
            return None

        best_class = self._targets[best_key]
        is_ambiguous = False
        for key, score, _ in results[1:]:
            if best_score - score > self._config.fuzzy_ambiguity_delta:
                break
            if self._targets[key] is not best_class:
                is_ambiguous = True
                logger.warning(
                    "Ambiguous fuzzy match for %r: %r (%.1f) vs %r (%.1f)",
                    normalised_name,
                    best_key,
                    best_score,
                    key,
                    score,
                )
                break

        logger.info(
            "Fuzzy match: %r → %r [%s] (score=%.1f, ambiguous=%s)",
            normalised_name,
            best_key,
            best_class.value,
            best_score,
            is_ambiguous,
        )
        return FuzzyCandidate(
            matched_name=best_key,
            classification=best_class,
            score=float(best_score),
            is_ambiguous=is_ambiguous,
        )
