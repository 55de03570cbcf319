"""Cash-flow forecasting from monthly aggregates"""

from typing import List, Mapping, Sequence

from budget_analytics.domain.aggregates import expense_series, income_series, trailing_window
from budget_analytics.domain.exceptions import ContractViolationError
from budget_analytics.domain.models import (
    CashFlowAverages,
    CategoryPrediction,
    ForecastRecord,
    ForecastResult,
    MonthlyAggregate,
    MonthlySeries,
    NextMonthPrediction,
    TrendResult,
)
from budget_analytics.domain.trends import analyze_trend
from budget_analytics.utils.date_utils import shift_month

MAX_HISTORICAL_MONTHS = 12
MAX_FORECAST_MONTHS = 6


def _no_trend() -> TrendResult:
    return TrendResult(direction="stable", percentage_change=0.0, predicted_next_value=0.0, confidence=0.0)


def _linear_growth(values: List[int]) -> float:
    """Average change per period across the window, (last - first) / len"""
    if len(values) < 2:
        return 0.0
    return (values[-1] - values[0]) / len(values)


def forecast_cash_flow(
    aggregates: Sequence[MonthlyAggregate],
    historical_months: int = 6,
    forecast_months: int = 3,
) -> ForecastResult:
    """
    Project income and expense for the months following the latest aggregate.

    Each projection is avg + growth * i over the trailing window, rounded to
    whole minor units and never negative. The regression-based trends for the
    same window are attached for callers that want the least-squares view.

    Raises:
        ContractViolationError: historical_months outside 1-12 or forecast_months outside 1-6
    """
    if not 1 <= historical_months <= MAX_HISTORICAL_MONTHS:
        raise ContractViolationError(f"historical_months must be 1-{MAX_HISTORICAL_MONTHS}, got {historical_months}")
    if not 1 <= forecast_months <= MAX_FORECAST_MONTHS:
        raise ContractViolationError(f"forecast_months must be 1-{MAX_FORECAST_MONTHS}, got {forecast_months}")

    window = trailing_window(aggregates, historical_months)
    if not window:
        # New user: nothing observed yet
        return ForecastResult(
            historical=[],
            forecasts=[],
            averages=CashFlowAverages(avg_income=0, avg_expense=0, avg_balance=0),
            income_trend=_no_trend(),
            expense_trend=_no_trend(),
        )

    historical = [
        ForecastRecord(
            year=a.year,
            month=a.month,
            income=a.income_cents,
            expense=a.expense_cents,
            balance=a.income_cents - a.expense_cents,
            kind="historical",
        )
        for a in window
    ]

    incomes = [r.income for r in historical]
    expenses = [r.expense for r in historical]
    avg_income = sum(incomes) / len(incomes)
    avg_expense = sum(expenses) / len(expenses)
    income_growth = _linear_growth(incomes)
    expense_growth = _linear_growth(expenses)

    last = window[-1]
    forecasts = []
    for i in range(1, forecast_months + 1):
        year, month = shift_month(last.year, last.month, i)
        projected_income = max(0, round(avg_income + income_growth * i))
        projected_expense = max(0, round(avg_expense + expense_growth * i))
        forecasts.append(
            ForecastRecord(
                year=year,
                month=month,
                income=projected_income,
                expense=projected_expense,
                balance=projected_income - projected_expense,
                kind="forecast",
            )
        )

    return ForecastResult(
        historical=historical,
        forecasts=forecasts,
        averages=CashFlowAverages(
            avg_income=round(avg_income),
            avg_expense=round(avg_expense),
            avg_balance=round(avg_income - avg_expense),
        ),
        income_trend=analyze_trend(income_series(window)),
        expense_trend=analyze_trend(expense_series(window)),
    )


def predict_next_month_expenses(category_series: Mapping[str, MonthlySeries]) -> NextMonthPrediction:
    """
    Sum of per-category trend predictions for next month.

    Overall confidence is the mean of the per-category R² values, 0 when
    there are no categories.
    """
    predictions = []
    for category, series in category_series.items():
        trend = analyze_trend(series)
        predictions.append(
            CategoryPrediction(
                category=category,
                predicted=trend.predicted_next_value,
                confidence=trend.confidence,
            )
        )

    total = sum(p.predicted for p in predictions)
    confidence = sum(p.confidence for p in predictions) / len(predictions) if predictions else 0.0

    return NextMonthPrediction(
        total=round(total, 2),
        by_category=sorted(predictions, key=lambda p: p.predicted, reverse=True),
        confidence=confidence,
    )
