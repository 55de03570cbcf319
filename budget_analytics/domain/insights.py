"""Spending insights - problem categories, seasonality, savings opportunities, recommendations"""

import calendar
from typing import Dict, List, Mapping, Optional, Sequence

from budget_analytics.domain.models import (
    ForecastResult,
    MonthlyAggregate,
    ProblemCategory,
    SavingsOpportunity,
    SeasonalPattern,
)

PROBLEM_INCREASE_PERCENT = 20
HIGH_SEVERITY_PERCENT = 50
MEDIUM_SEVERITY_PERCENT = 30
SEASONAL_BAND = 0.15  # ±15% around the overall monthly average
BENCHMARK_TOLERANCE = 1.2  # Flag spending 20% above benchmark
OVERSPEND_MULTIPLIER = 2

# Recommended share of income per spending category
DEFAULT_BENCHMARKS: Dict[str, float] = {
    "Groceries": 0.15,
    "Transport": 0.10,
    "Housing": 0.30,
    "Leisure": 0.05,
    "Education": 0.05,
    "Health": 0.10,
}


def identify_problem_categories(
    current: Mapping[str, float],
    averages: Mapping[str, float],
) -> List[ProblemCategory]:
    """
    Categories whose current-month spend is more than 20% above their average.

    A category without history is compared against itself and therefore
    never flagged.
    """
    problems = []
    for category, amount in current.items():
        average = averages.get(category, amount)
        if average <= 0:
            continue

        increase = (amount - average) / average * 100
        if increase <= PROBLEM_INCREASE_PERCENT:
            continue

        if increase > HIGH_SEVERITY_PERCENT:
            severity = "high"
        elif increase > MEDIUM_SEVERITY_PERCENT:
            severity = "medium"
        else:
            severity = "low"

        problems.append(
            ProblemCategory(
                category=category,
                current_month=amount,
                average=average,
                percentage_increase=round(increase, 2),
                severity=severity,
            )
        )

    return sorted(problems, key=lambda p: p.percentage_increase, reverse=True)


def analyze_seasonal_patterns(aggregates: Sequence[MonthlyAggregate]) -> List[SeasonalPattern]:
    """Average expense per calendar month, labelled against the overall average"""
    by_month: Dict[int, List[int]] = {}
    for aggregate in aggregates:
        by_month.setdefault(aggregate.month, []).append(aggregate.expense_cents)

    if not by_month:
        return []

    month_averages = {month: sum(values) / len(values) for month, values in sorted(by_month.items())}
    overall = sum(month_averages.values()) / len(month_averages)
    band = overall * SEASONAL_BAND

    patterns = []
    for month, average in month_averages.items():
        if average > overall + band:
            pattern = "high"
        elif average < overall - band:
            pattern = "low"
        else:
            pattern = "normal"
        patterns.append(
            SeasonalPattern(
                month=month,
                month_name=calendar.month_name[month],
                average_expense=round(average, 2),
                pattern=pattern,
            )
        )
    return patterns


def identify_savings_opportunities(
    avg_income: float,
    category_averages: Mapping[str, float],
    benchmarks: Optional[Mapping[str, float]] = None,
) -> List[SavingsOpportunity]:
    """Categories spending well above their recommended share of income"""
    benchmarks = DEFAULT_BENCHMARKS if benchmarks is None else benchmarks
    if avg_income <= 0:
        return []

    opportunities = []
    for category, spending in category_averages.items():
        share = benchmarks.get(category)
        if share is None:
            continue

        benchmark = avg_income * share
        if spending <= benchmark * BENCHMARK_TOLERANCE:
            continue

        excess = spending - benchmark
        opportunities.append(
            SavingsOpportunity(
                category=category,
                current_spending=round(spending, 2),
                benchmark=round(benchmark, 2),
                potential_savings=round(excess, 2),
                recommendation=(
                    f"You spend {spending / avg_income * 100:.1f}% of your income on {category}. "
                    f"The recommended share is about {share * 100:.0f}%; "
                    f"consider cutting {excess / 100:.2f} per month."
                ),
            )
        )

    return sorted(opportunities, key=lambda o: o.potential_savings, reverse=True)


def generate_recommendations(
    latest: MonthlyAggregate,
    category_averages: Mapping[str, float],
    forecast: Optional[ForecastResult] = None,
) -> List[str]:
    """
    Proactive warnings for the dashboard.

    - any expense category this month above twice its average
    - a negative projected balance for next month
    """
    recommendations = []
    for total in latest.totals:
        if total.type == "income":
            continue
        average = category_averages.get(total.category, 0)
        if average > 0 and total.actual_cents > OVERSPEND_MULTIPLIER * average:
            recommendations.append(
                f'Spending on "{total.category}" this month ({total.actual_cents / 100:.2f}) is more than '
                f"twice its historical average. Consider reviewing this category."
            )

    if forecast is not None and forecast.forecasts and forecast.forecasts[0].balance < 0:
        balance = forecast.forecasts[0].balance
        recommendations.append(
            f"Next month's balance is projected to be negative ({balance / 100:.2f}). "
            f"Consider cutting expenses or increasing income."
        )

    return recommendations
