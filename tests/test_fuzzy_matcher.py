"""
Unit tests for the FuzzyMatcher.
"""

from __future__ import annotations

import pytest

from trial_balance.config import ReviewConfig
from trial_balance.fuzzy_matcher import FuzzyMatcher
from trial_balance.schema import Classification
from trial_balance.synonym_mapper import SynonymMapper


@pytest.fixture
def matcher() -> FuzzyMatcher:
    return FuzzyMatcher(SynonymMapper().all_synonyms(), config=ReviewConfig(fuzzy_threshold=75.0))


@pytest.fixture
def strict_matcher() -> FuzzyMatcher:
    return FuzzyMatcher(SynonymMapper().all_synonyms(), config=ReviewConfig(fuzzy_threshold=95.0))


# ======================================================================
# Matching
# ======================================================================

class TestMatch:
    def test_close_match_accepted(self, matcher: FuzzyMatcher) -> None:
        result = matcher.match("trade payabels")  # small typo
        assert result is not None
        assert result.matched_name == "trade payables"
        assert result.classification is Classification.BS_CURRENT_LIABILITY
        assert result.score >= 75.0

    def test_word_order_ignored(self, matcher: FuzzyMatcher) -> None:
        result = matcher.match("expenses office")
        assert result is not None
        assert result.matched_name == "office expenses"
        assert result.score == 100.0

    def test_no_match_below_threshold(self, strict_matcher: FuzzyMatcher) -> None:
        assert strict_matcher.match("trde pybls") is None

    def test_empty_input(self, matcher: FuzzyMatcher) -> None:
        assert matcher.match("") is None

    def test_no_targets(self) -> None:
        assert FuzzyMatcher({}).match("cash") is None


# ======================================================================
# Ambiguity
# ======================================================================

class TestAmbiguity:
    def test_close_candidates_with_different_classes(self) -> None:
        targets = {
            "bank loan": Classification.BS_NON_CURRENT_LIABILITY,
            "bank loans": Classification.BS_CURRENT_LIABILITY,
        }
        m = FuzzyMatcher(targets, config=ReviewConfig(fuzzy_threshold=70.0, fuzzy_ambiguity_delta=10.0))
        result = m.match("bank loan s")
        assert result is not None
        assert result.is_ambiguous

    def test_close_candidates_same_class_not_ambiguous(self) -> None:
        targets = {
            "salaries": Classification.PNL_OPERATING_EXPENSE,
            "salary": Classification.PNL_OPERATING_EXPENSE,
        }
        m = FuzzyMatcher(targets, config=ReviewConfig(fuzzy_threshold=70.0, fuzzy_ambiguity_delta=10.0))
        result = m.match("salarie")
        assert result is not None
        assert not result.is_ambiguous
