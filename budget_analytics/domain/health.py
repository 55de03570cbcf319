"""Financial health scoring - weighted composite of four sub-scores"""

from typing import List, Tuple

from budget_analytics.domain.exceptions import ContractViolationError
from budget_analytics.domain.models import HealthFactor, HealthScore

# Factor weights (sum to 1.0)
SAVINGS_WEIGHT = 0.30
DIVERSIFICATION_WEIGHT = 0.20
DEBT_WEIGHT = 0.25
EMERGENCY_WEIGHT = 0.25

SAVINGS_RATE_MULTIPLIER = 5  # 20% savings rate -> 100 points
POINTS_PER_INCOME_SOURCE = 33  # Three sources -> ~100 points
EMERGENCY_TARGET_MONTHS = 6

GOOD_THRESHOLD = 70
WARNING_THRESHOLD = 40

GRADE_BANDS: List[Tuple[int, str]] = [(90, "A"), (80, "B"), (70, "C"), (60, "D")]

RECOMMENDATIONS = {
    "Savings rate": "Raise your savings rate to at least 20% of income",
    "Income diversification": "Consider adding additional sources of income",
    "Debt control": "Work on paying down outstanding debt",
    "Emergency fund": "Build an emergency fund covering 6 months of expenses",
}


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


def _status(score: float) -> str:
    if score >= GOOD_THRESHOLD:
        return "good"
    if score >= WARNING_THRESHOLD:
        return "warning"
    return "critical"


def grade_for(score: int) -> str:
    for floor, grade in GRADE_BANDS:
        if score >= floor:
            return grade
    return "F"


def score_health(
    income: float,
    expense: float,
    debt: float,
    liquid_assets: float,
    income_sources: int = 1,
    window_months: int = 3,
) -> HealthScore:
    """
    Score financial health from 0 to 100.

    income and expense are totals over the trailing window of
    window_months; debt and liquid_assets are current balances.

    Sub-scores:
    - Savings rate (30%): (income - expense) / income * 100, times 5, capped at 100
    - Income diversification (20%): 33 points per distinct income source
    - Debt control (25%): 100 - debt / income * 100; no income means no measurable burden
    - Emergency fund (25%): months of expenses covered by liquid assets, 6 months = 100

    Zero inputs are valid and score from these defaults.
    """
    for name, value in (("income", income), ("expense", expense), ("debt", debt), ("liquid_assets", liquid_assets)):
        if value < 0:
            raise ContractViolationError(f"{name} must be >= 0, got {value}")
    if window_months < 1:
        raise ContractViolationError(f"window_months must be >= 1, got {window_months}")

    savings_rate = (income - expense) / income * 100 if income > 0 else 0.0
    savings_score = _clamp(savings_rate * SAVINGS_RATE_MULTIPLIER)

    diversification_score = _clamp(max(income_sources, 1) * POINTS_PER_INCOME_SOURCE)

    debt_ratio = debt / income * 100 if income > 0 else 0.0
    debt_score = _clamp(100 - debt_ratio)

    monthly_expense = expense / window_months
    coverage_months = liquid_assets / monthly_expense if monthly_expense > 0 else 0.0
    emergency_score = _clamp(coverage_months / EMERGENCY_TARGET_MONTHS * 100)

    raw = [
        ("Savings rate", savings_score, SAVINGS_WEIGHT),
        ("Income diversification", diversification_score, DIVERSIFICATION_WEIGHT),
        ("Debt control", debt_score, DEBT_WEIGHT),
        ("Emergency fund", emergency_score, EMERGENCY_WEIGHT),
    ]

    factors = [
        HealthFactor(name=name, score=round(score), weight=weight, status=_status(score))
        for name, score, weight in raw
    ]
    final_score = round(sum(f.score * f.weight for f in factors))

    recommendations = [RECOMMENDATIONS[name] for name, score, _ in raw if score < GOOD_THRESHOLD]

    return HealthScore(
        score=final_score,
        grade=grade_for(final_score),
        factors=factors,
        recommendations=recommendations,
    )
