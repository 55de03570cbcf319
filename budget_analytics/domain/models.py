"""Domain models - pure Python dataclasses representing analytics inputs and results"""

import math
import numbers
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple, Union

import numpy as np

from budget_analytics.domain.exceptions import ContractViolationError

Number = Union[int, float, Decimal]

CATEGORY_TYPES = ("income", "expense", "investment")


@dataclass(frozen=True)
class Category:
    """Category from the storage collaborator's directory"""

    id: int
    name: str
    type: str  # "income", "expense" or "investment"


@dataclass(frozen=True)
class CategoryTotal:
    """Monthly sum of entries for one category"""

    category: str
    type: str
    planned_cents: int
    actual_cents: int

    def __post_init__(self) -> None:
        if self.type not in CATEGORY_TYPES:
            raise ContractViolationError(f"Unknown category type: {self.type!r}")
        if self.planned_cents < 0 or self.actual_cents < 0:
            raise ContractViolationError(f"Negative total for category {self.category!r}")


@dataclass(frozen=True)
class MonthlyAggregate:
    """Per-category totals for a single month, as handed over by the aggregate provider"""

    year: int
    month: int
    totals: Tuple[CategoryTotal, ...] = ()

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ContractViolationError(f"Month out of range: {self.month}")
        object.__setattr__(self, "totals", tuple(self.totals))

    def total_for_type(self, category_type: str) -> int:
        return sum(t.actual_cents for t in self.totals if t.type == category_type)

    @property
    def income_cents(self) -> int:
        return self.total_for_type("income")

    @property
    def expense_cents(self) -> int:
        return self.total_for_type("expense")

    @property
    def investment_cents(self) -> int:
        return self.total_for_type("investment")

    def category_total(self, category: str) -> Optional[int]:
        """Actual total for a category, or None when the category has no entries this month"""
        matches = [t.actual_cents for t in self.totals if t.category == category]
        return sum(matches) if matches else None


@dataclass(frozen=True)
class RawTransaction:
    """Imported transaction awaiting classification"""

    description: str
    amount_cents: int  # Signed: positive = money in, negative = money out
    date: date
    category_hint: Optional[str] = None


@dataclass(frozen=True)
class FinancialPosition:
    """Balance-sheet figures used by the health scorer"""

    debt_cents: int
    liquid_assets_cents: int


@dataclass(frozen=True)
class MonthlySeries:
    """
    Ordered monthly observations (oldest first) for a single label.

    Values are minor-unit integers or their decimal equivalent; Decimal
    values are kept as given and averaged exactly.
    """

    label: str
    values: Tuple[Number, ...]

    def __post_init__(self) -> None:
        values = tuple(self.values)
        if not values:
            raise ContractViolationError(f"Series {self.label!r} must have at least one value")
        for value in values:
            # bool is an int subclass but never a valid amount
            if isinstance(value, bool) or not isinstance(value, (numbers.Real, Decimal)):
                raise ContractViolationError(f"Series {self.label!r} has non-numeric value {value!r}")
            finite = value.is_finite() if isinstance(value, Decimal) else math.isfinite(value)
            if not finite or value < 0:
                raise ContractViolationError(f"Series {self.label!r} has invalid value {value!r}")
        object.__setattr__(self, "values", values)

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self):
        return iter(self.values)

    @property
    def first(self) -> Number:
        return self.values[0]

    @property
    def last(self) -> Number:
        return self.values[-1]

    def mean(self) -> Number:
        if any(isinstance(v, Decimal) for v in self.values):
            return sum(Decimal(v) for v in self.values) / len(self.values)
        return float(np.mean(self.values))


@dataclass
class TrendResult:
    """Direction, magnitude and goodness of fit of a linear trend"""

    direction: str  # "up", "down" or "stable"
    percentage_change: float
    predicted_next_value: float
    confidence: float  # R², 0..1


@dataclass
class ClassificationSuggestion:
    """Candidate category for a transaction"""

    category_name: str
    category_type: str
    confidence: float  # 0..100


@dataclass
class LearnedPattern:
    """Signature -> category association strengthened by user confirmations"""

    signature: str
    category_id: int
    hit_count: int
    last_seen_at: datetime
    source: str = "manual"  # Source of the first confirmation: "manual" or "confirmed"
    amount_cents: int = 0  # Amount of the first confirmed transaction


@dataclass
class ClassificationStats:
    """Summary of what the classifier has learned for a user"""

    total_patterns: int
    high_confidence_count: int
    top_categories: List[Tuple[str, int]]


@dataclass
class AnomalyResult:
    """Verdict for a single amount against its category history"""

    is_anomalous: bool
    average: float
    sample_count: int
    deviation_ratio: float


@dataclass
class TransactionInsight:
    """Classification and anomaly verdict for an imported transaction"""

    transaction: RawTransaction
    suggestions: List[ClassificationSuggestion]
    anomaly: Optional[AnomalyResult] = None


@dataclass
class ForecastRecord:
    """One month of a cash-flow forecast, either observed or projected"""

    year: int
    month: int
    income: int
    expense: int
    balance: int
    kind: str  # "historical" or "forecast"


@dataclass
class CashFlowAverages:
    avg_income: int
    avg_expense: int
    avg_balance: int


@dataclass
class ForecastResult:
    """Cash-flow history plus projection"""

    historical: List[ForecastRecord]
    forecasts: List[ForecastRecord]
    averages: CashFlowAverages
    income_trend: TrendResult
    expense_trend: TrendResult


@dataclass
class CategoryPrediction:
    category: str
    predicted: float
    confidence: float


@dataclass
class NextMonthPrediction:
    """Portfolio-level expense prediction built from per-category trends"""

    total: float
    by_category: List[CategoryPrediction]
    confidence: float


@dataclass(frozen=True)
class CashFlowBaseline:
    """Trailing-window monthly averages consumed by the scenario simulator"""

    avg_income: float
    avg_expense: float
    category_averages: Dict[str, float] = field(default_factory=dict)


@dataclass
class SimulationMonth:
    month: date
    income: float
    expenses: float
    savings: float
    cumulative_balance: float


@dataclass
class SimulationSummary:
    total_income: float
    total_expenses: float
    total_savings: float
    final_balance: float


@dataclass
class SimulationResult:
    """Month-by-month projection of a constant-rate scenario"""

    months: List[SimulationMonth]
    summary: SimulationSummary


@dataclass
class CategoryReductionOutcome:
    before: SimulationResult
    after: SimulationResult
    total_savings: float  # Net benefit of the reduction over the horizon


@dataclass
class IncomeIncreaseOutcome:
    before: SimulationResult
    after: SimulationResult
    additional_savings: float


@dataclass
class GoalMonth:
    month: date
    saved: float
    accumulated: float
    progress: float  # Percentage of goal, 0..100


@dataclass
class GoalTimeline:
    months_needed: int
    achievement_date: date
    monthly_savings: float
    breakdown: List[GoalMonth]


@dataclass
class RetirementProjection:
    months_until_retirement: int
    total_contributions: float
    estimated_value: float
    monthly_income: float  # Estimated monthly withdrawal at retirement


@dataclass
class Scenario:
    """What-if parameter changes applied to the historical baseline"""

    name: str
    months: int
    income_change_percent: float = 0.0
    expense_change_percent: float = 0.0
    new_expense_cents: int = 0


@dataclass
class ScenarioComparison:
    name: str
    result: SimulationResult


@dataclass
class HealthFactor:
    name: str
    score: int
    weight: float
    status: str  # "good", "warning" or "critical"


@dataclass
class HealthScore:
    """Weighted composite of savings, diversification, debt and emergency-fund sub-scores"""

    score: int
    grade: str
    factors: List[HealthFactor]
    recommendations: List[str]


@dataclass
class ProblemCategory:
    category: str
    current_month: float
    average: float
    percentage_increase: float
    severity: str  # "high", "medium" or "low"


@dataclass
class SeasonalPattern:
    month: int
    month_name: str
    average_expense: float
    pattern: str  # "high", "normal" or "low"


@dataclass
class SavingsOpportunity:
    category: str
    current_spending: float
    benchmark: float
    potential_savings: float
    recommendation: str
