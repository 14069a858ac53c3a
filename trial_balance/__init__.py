"""
Trial Balance: Financial Statement Builder.

Reads trial-balance exports whose column names vary from file to file,
classifies every account by its code, and builds a balance sheet and an
income statement from the result.

Nothing is classified silently: accounts no rule recognises stay
``unclassified`` and are surfaced for review with a name-based suggestion.
"""

__version__ = "1.0.0"
__author__ = "Trial Balance Team"

from trial_balance.pipeline import TrialBalancePipeline  # noqa: F401
