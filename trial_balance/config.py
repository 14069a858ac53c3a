"""
Configuration module for the trial balance pipeline.

All tuneable parameters (keyword lists, thresholds, feature flags) live
here.  Nothing is hard-coded in business logic modules.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Optional, Tuple


@dataclass(frozen=True)
class MappingConfig:
    """Keyword lists used to infer which header feeds which field.

    Lists are ordered; the first header containing any keyword wins.
    """

    account_code_keywords: Tuple[str, ...] = ("account", "code", "acc")
    account_name_keywords: Tuple[str, ...] = ("name", "description", "desc")
    amount_keywords: Tuple[str, ...] = (
        "prelim", "amount", "balance", "debit", "credit",
    )
    adjustments_keywords: Tuple[str, ...] = ("adj", "adjustment")
    final_amount_keywords: Tuple[str, ...] = ("rep", "final", "total", "closing")

    # Prior-period columns carry this marker and must never be taken as the
    # reporting-period final amount.
    final_amount_exclusions: Tuple[str, ...] = ("12/23",)

    # When no header looks like an account code, use the first column.
    account_code_falls_back_to_first: bool = True


@dataclass(frozen=True)
class ExtractionConfig:
    """Controls row-level noise filtering."""

    # Rows whose name contains this (case-insensitive) and which carry no
    # account code are summary lines, not accounts.
    summary_row_markers: Tuple[str, ...] = ("net income",)

    # Sub-ledger detail lines carry this prefix instead of a numeric code.
    detail_code_prefix: str = "BDO"

    # Drop zero-balance parent category rows that have child accounts.
    suppress_parent_categories: bool = True

    # Number of raw rows returned by the mapping preview.
    preview_rows: int = 5


@dataclass(frozen=True)
class ReviewConfig:
    """Controls the name-based suggestion layer for unclassified entries."""

    enabled: bool = True

    # Fuzzy matching: minimum similarity score (0–100) to accept a match
    fuzzy_threshold: float = 80.0

    # If the two best candidates are within this delta of each other and
    # point at different classifications, the suggestion is ambiguous.
    fuzzy_ambiguity_delta: float = 5.0


@dataclass(frozen=True)
class ValidationConfig:
    """Controls the validation layer."""

    # Maximum plausible absolute value; larger amounts suggest a unit error
    max_absolute_value: Decimal = Decimal("1e15")

    # Classified entries of a trial balance net to zero; differences above
    # this are reported.
    balance_tolerance: Decimal = Decimal("0.01")

    check_sign_convention: bool = True
    check_balance: bool = True

    # Emit one warning per unclassified entry.
    warn_on_unclassified: bool = True


@dataclass(frozen=True)
class PipelineConfig:
    """Top-level configuration aggregating all sub-configs."""

    mapping: MappingConfig = field(default_factory=MappingConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    review: ReviewConfig = field(default_factory=ReviewConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)

    # Logging level for the pipeline audit trail
    log_level: int = logging.INFO

    # When True the pipeline raises on any validation error instead of
    # returning a failed output.
    strict_mode: bool = False

    # Optional path to a user-supplied synonym JSON file that is *merged*
    # with the built-in review dictionary.
    custom_synonym_path: Optional[Path] = None
