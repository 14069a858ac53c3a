"""
Classification schema and data models.

Defines the closed set of account classifications (the "truth" every row is
mapped into) and the typed data structures carried through the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# ---------------------------------------------------------------------------
# Classification Schema
# ---------------------------------------------------------------------------

class ReportSection(str, Enum):
    """The statement an entry is reported on."""

    BALANCE_SHEET = "balance_sheet"
    PNL = "pnl"

    @property
    def label(self) -> str:
        return _SECTION_LABELS[self]


class Classification(str, Enum):
    """
    Every classification an entry can carry.

    Constructing one from an unknown tag raises ``ValueError``.  The
    ``.value`` is the stored tag.
    """

    BS_NON_CURRENT_ASSET = "bs_non_current_asset"
    BS_CURRENT_ASSET = "bs_current_asset"
    BS_NON_CURRENT_LIABILITY = "bs_non_current_liability"
    BS_CURRENT_LIABILITY = "bs_current_liability"
    BS_EQUITY = "bs_equity"
    PNL_REVENUE = "pnl_revenue"
    PNL_COST_OF_SALES = "pnl_cost_of_sales"
    PNL_OPERATING_EXPENSE = "pnl_operating_expense"
    PNL_FINANCE_COST = "pnl_finance_cost"
    PNL_TAX = "pnl_tax"
    UNCLASSIFIED = "unclassified"

    @property
    def label(self) -> str:
        """Human-readable name used by renderers and the review API."""
        return _LABELS[self]

    @property
    def default_section(self) -> ReportSection:
        return _DEFAULT_SECTIONS[self]

    @property
    def expected_sign(self) -> int:
        """Sign the stored final amount is expected to carry.

        ``-1`` for credit-natured accounts (liabilities, equity, revenue),
        ``+1`` for expenses, ``0`` where either sign is legitimate.
        """
        return _EXPECTED_SIGNS[self]


_SECTION_LABELS: Dict[ReportSection, str] = {
    ReportSection.BALANCE_SHEET: "Balance Sheet",
    ReportSection.PNL: "Income Statement (P&L)",
}

_LABELS: Dict[Classification, str] = {
    Classification.BS_NON_CURRENT_ASSET: "Non-Current Assets",
    Classification.BS_CURRENT_ASSET: "Current Assets",
    Classification.BS_NON_CURRENT_LIABILITY: "Non-Current Liabilities",
    Classification.BS_CURRENT_LIABILITY: "Current Liabilities",
    Classification.BS_EQUITY: "Equity",
    Classification.PNL_REVENUE: "Revenue",
    Classification.PNL_COST_OF_SALES: "Cost of Sales",
    Classification.PNL_OPERATING_EXPENSE: "Operating Expenses",
    Classification.PNL_FINANCE_COST: "Finance Costs",
    Classification.PNL_TAX: "Taxation",
    Classification.UNCLASSIFIED: "Unclassified",
}

_DEFAULT_SECTIONS: Dict[Classification, ReportSection] = {
    c: (ReportSection.PNL if c.value.startswith("pnl_") else ReportSection.BALANCE_SHEET)
    for c in Classification
}

_EXPECTED_SIGNS: Dict[Classification, int] = {
    Classification.BS_NON_CURRENT_ASSET: 0,
    Classification.BS_CURRENT_ASSET: 0,
    Classification.BS_NON_CURRENT_LIABILITY: -1,
    Classification.BS_CURRENT_LIABILITY: -1,
    Classification.BS_EQUITY: -1,
    Classification.PNL_REVENUE: -1,
    Classification.PNL_COST_OF_SALES: 1,
    Classification.PNL_OPERATING_EXPENSE: 1,
    Classification.PNL_FINANCE_COST: 1,
    Classification.PNL_TAX: 0,
    Classification.UNCLASSIFIED: 0,
}

# Classification plus the section it is reported on.
ClassificationResult = Tuple[Classification, ReportSection]

UNCLASSIFIED_RESULT: ClassificationResult = (
    Classification.UNCLASSIFIED,
    ReportSection.BALANCE_SHEET,
)


def classification_lookup(name: str) -> Optional[Classification]:
    """Case-insensitive lookup by tag or display label."""
    _lower = name.strip().lower()
    for c in Classification:
        if c.value == _lower or c.label.lower() == _lower:
            return c
    return None


def classification_options() -> List[Dict[str, str]]:
    """Options for a classification picker, in statement order."""
    return [
        {"value": c.value, "label": c.label, "section": c.default_section.value}
        for c in Classification
    ]


# ---------------------------------------------------------------------------
# Pipeline Data Models
# ---------------------------------------------------------------------------

def to_decimal(value: Any) -> Decimal:
    """Coerce an already-numeric value to ``Decimal`` without float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, str)):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))
    raise TypeError(f"Expected a number, got {type(value).__name__}")


def _money(value: Optional[Decimal]) -> Optional[float]:
    return None if value is None else float(value)


@dataclass
class ColumnMapping:
    """Which raw header feeds each semantic field (``None`` = unmapped)."""

    account_code: Optional[str] = None
    account_name: Optional[str] = None
    amount: Optional[str] = None
    adjustments: Optional[str] = None
    final_amount: Optional[str] = None

    # field attribute → external (camelCase) name
    FIELDS = {
        "account_code": "accountCode",
        "account_name": "accountName",
        "amount": "amount",
        "adjustments": "adjustments",
        "final_amount": "finalAmount",
    }
    REQUIRED = ("account_code", "amount")

    def missing_required(self) -> List[str]:
        """External names of required fields that are still unmapped."""
        return [self.FIELDS[f] for f in self.REQUIRED if not getattr(self, f)]

    @property
    def is_complete(self) -> bool:
        return not self.missing_required()

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {ext: getattr(self, attr) for attr, ext in self.FIELDS.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ColumnMapping":
        """Build from camelCase or snake_case keys; blank values are unmapped."""
        kwargs: Dict[str, Optional[str]] = {}
        for attr, ext in cls.FIELDS.items():
            value = data.get(ext, data.get(attr))
            kwargs[attr] = str(value) if value not in (None, "") else None
        return cls(**kwargs)


@dataclass(frozen=True)
class Entry:
    """One trial-balance account line, before classification."""

    account_code: str
    account_name: str
    amount: Decimal
    adjustments: Optional[Decimal]
    final_amount: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "final_amount", to_decimal(self.final_amount))
        if self.adjustments is not None:
            object.__setattr__(self, "adjustments", to_decimal(self.adjustments))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accountCode": self.account_code,
            "accountName": self.account_name,
            "amount": _money(self.amount),
            "adjustments": _money(self.adjustments),
            "finalAmount": _money(self.final_amount),
        }


@dataclass(frozen=True)
class ClassifiedEntry(Entry):
    """An ``Entry`` with exactly one classification and report section.

    ``entry_id`` and ``is_manual`` are filled in by the entry store.
    """

    classification: Classification = Classification.UNCLASSIFIED
    report_section: ReportSection = ReportSection.BALANCE_SHEET
    entry_id: Optional[str] = None
    is_manual: bool = False

    def __post_init__(self) -> None:
        super().__post_init__()
        # Raises ValueError for unknown tags.
        object.__setattr__(self, "classification", Classification(self.classification))
        object.__setattr__(self, "report_section", ReportSection(self.report_section))

    @classmethod
    def from_entry(
        cls,
        entry: Entry,
        classification: Classification,
        report_section: ReportSection,
        entry_id: Optional[str] = None,
        is_manual: bool = False,
    ) -> "ClassifiedEntry":
        return cls(
            account_code=entry.account_code,
            account_name=entry.account_name,
            amount=entry.amount,
            adjustments=entry.adjustments,
            final_amount=entry.final_amount,
            classification=classification,
            report_section=report_section,
            entry_id=entry_id,
            is_manual=is_manual,
        )

    def with_classification(
        self,
        classification: Classification,
        report_section: Optional[ReportSection] = None,
    ) -> "ClassifiedEntry":
        classification = Classification(classification)
        section = report_section or classification.default_section
        return replace(self, classification=classification, report_section=section)

    @property
    def sign_convention_holds(self) -> bool:
        """True unless the final amount carries the opposite of the expected sign."""
        expected = self.classification.expected_sign
        if expected == 0 or self.final_amount == 0:
            return True
        return (self.final_amount > 0) == (expected > 0)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d.update({
            "id": self.entry_id,
            "classification": self.classification.value,
            "reportSection": self.report_section.value,
            "isManual": self.is_manual,
        })
        return d


@dataclass(frozen=True)
class ProjectInfo:
    """Descriptor handed to renderers."""

    project_id: str
    name: str
    company_name: str
    period_end: date

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.project_id,
            "name": self.name,
            "companyName": self.company_name,
            "periodEnd": self.period_end.isoformat(),
        }


@dataclass
class BalanceSheetData:
    """Balance sheet buckets and totals, signs as stored."""

    non_current_assets: List[ClassifiedEntry] = field(default_factory=list)
    current_assets: List[ClassifiedEntry] = field(default_factory=list)
    non_current_liabilities: List[ClassifiedEntry] = field(default_factory=list)
    current_liabilities: List[ClassifiedEntry] = field(default_factory=list)
    equity: List[ClassifiedEntry] = field(default_factory=list)
    total_non_current_assets: Decimal = Decimal("0")
    total_current_assets: Decimal = Decimal("0")
    total_assets: Decimal = Decimal("0")
    total_non_current_liabilities: Decimal = Decimal("0")
    total_current_liabilities: Decimal = Decimal("0")
    total_liabilities: Decimal = Decimal("0")
    total_equity: Decimal = Decimal("0")
    total_liabilities_and_equity: Decimal = Decimal("0")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nonCurrentAssets": [e.to_dict() for e in self.non_current_assets],
            "currentAssets": [e.to_dict() for e in self.current_assets],
            "nonCurrentLiabilities": [e.to_dict() for e in self.non_current_liabilities],
            "currentLiabilities": [e.to_dict() for e in self.current_liabilities],
            "equity": [e.to_dict() for e in self.equity],
            "totalNonCurrentAssets": _money(self.total_non_current_assets),
            "totalCurrentAssets": _money(self.total_current_assets),
            "totalAssets": _money(self.total_assets),
            "totalNonCurrentLiabilities": _money(self.total_non_current_liabilities),
            "totalCurrentLiabilities": _money(self.total_current_liabilities),
            "totalLiabilities": _money(self.total_liabilities),
            "totalEquity": _money(self.total_equity),
            "totalLiabilitiesAndEquity": _money(self.total_liabilities_and_equity),
        }


@dataclass
class IncomeStatementData:
    """Income statement buckets, totals and derived profit figures."""

    revenue: List[ClassifiedEntry] = field(default_factory=list)
    cost_of_sales: List[ClassifiedEntry] = field(default_factory=list)
    operating_expenses: List[ClassifiedEntry] = field(default_factory=list)
    finance_costs: List[ClassifiedEntry] = field(default_factory=list)
    taxation: List[ClassifiedEntry] = field(default_factory=list)
    total_revenue: Decimal = Decimal("0")
    total_cost_of_sales: Decimal = Decimal("0")
    gross_profit: Decimal = Decimal("0")
    total_operating_expenses: Decimal = Decimal("0")
    operating_profit: Decimal = Decimal("0")
    total_finance_costs: Decimal = Decimal("0")
    profit_before_tax: Decimal = Decimal("0")
    total_taxation: Decimal = Decimal("0")
    net_profit: Decimal = Decimal("0")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "revenue": [e.to_dict() for e in self.revenue],
            "costOfSales": [e.to_dict() for e in self.cost_of_sales],
            "operatingExpenses": [e.to_dict() for e in self.operating_expenses],
            "financeCosts": [e.to_dict() for e in self.finance_costs],
            "taxation": [e.to_dict() for e in self.taxation],
            "totalRevenue": _money(self.total_revenue),
            "totalCostOfSales": _money(self.total_cost_of_sales),
            "grossProfit": _money(self.gross_profit),
            "totalOperatingExpenses": _money(self.total_operating_expenses),
            "operatingProfit": _money(self.operating_profit),
            "totalFinanceCosts": _money(self.total_finance_costs),
            "profitBeforeTax": _money(self.profit_before_tax),
            "totalTaxation": _money(self.total_taxation),
            "netProfit": _money(self.net_profit),
        }


@dataclass
class ReviewSuggestion:
    """A name-based classification hint for an unclassified entry."""

    account_code: str
    account_name: str
    classification: Classification
    confidence: float  # 0.0 – 100.0
    match_method: str  # "synonym" | "fuzzy"
    is_ambiguous: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accountCode": self.account_code,
            "accountName": self.account_name,
            "classification": self.classification.value,
            "reportSection": self.classification.default_section.value,
            "confidence": round(self.confidence, 2),
            "matchMethod": self.match_method,
            "isAmbiguous": self.is_ambiguous,
        }


@dataclass
class ExtractionReport:
    """What the row extractor kept, dropped and had to default."""

    entries: List[Entry] = field(default_factory=list)
    skipped: Dict[str, int] = field(default_factory=dict)
    parse_warnings: List[str] = field(default_factory=list)


@dataclass
class IngestOutput:
    """Aggregate result of one upload run."""

    mapping: ColumnMapping = field(default_factory=ColumnMapping)
    entries: List[ClassifiedEntry] = field(default_factory=list)
    skipped: Dict[str, int] = field(default_factory=dict)
    suggestions: List[ReviewSuggestion] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.validation_errors) == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "mapping": self.mapping.to_dict(),
            "entries": [e.to_dict() for e in self.entries],
            "skipped": dict(self.skipped),
            "suggestions": [s.to_dict() for s in self.suggestions],
            "validation_errors": self.validation_errors,
            "validation_warnings": self.validation_warnings,
        }


@dataclass
class ReportOutput:
    """Both statements plus the review summary for one project."""

    balance_sheet: BalanceSheetData
    income_statement: IncomeStatementData
    summary: Dict[str, Any] = field(default_factory=dict)
    validation_warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "balanceSheet": self.balance_sheet.to_dict(),
            "incomeStatement": self.income_statement.to_dict(),
            "summary": self.summary,
            "validation_warnings": self.validation_warnings,
        }
