"""Analytics endpoints - trends, forecasts, anomaly checks, health score and insights"""

import logging
from datetime import date
from typing import List, Literal

from fastapi import APIRouter, Depends, Query, Request

from budget_analytics.api.dependencies import get_aggregate_client, get_request_id
from budget_analytics.api.v1.schemas import AnomalyRequest
from budget_analytics.config import settings
from budget_analytics.domain.aggregates import (
    category_averages,
    category_series,
    category_series_map,
    expense_series,
    income_series,
    trailing_window,
)
from budget_analytics.domain.anomaly import detect_anomaly
from budget_analytics.domain.forecasting import forecast_cash_flow, predict_next_month_expenses
from budget_analytics.domain.health import score_health
from budget_analytics.domain.insights import (
    analyze_seasonal_patterns,
    generate_recommendations,
    identify_problem_categories,
    identify_savings_opportunities,
)
from budget_analytics.domain.models import (
    AnomalyResult,
    ForecastResult,
    HealthScore,
    NextMonthPrediction,
    ProblemCategory,
    SavingsOpportunity,
    SeasonalPattern,
    TrendResult,
)
from budget_analytics.domain.trends import analyze_trend
from budget_analytics.infrastructure.clients.aggregates import AggregateClient
from budget_analytics.infrastructure.observability.logging import log_anomaly
from budget_analytics.infrastructure.observability.metrics import health_grade_counter, record_anomaly
from budget_analytics.utils.date_utils import add_months

router = APIRouter()


@router.get("/trends/{kind}", response_model=TrendResult)
async def get_trend(
    kind: Literal["income", "expense"],
    user_id: str = Query(..., min_length=1, description="User identifier"),
    months: int = Query(settings.history_window_months, ge=1, le=12),
    client: AggregateClient = Depends(get_aggregate_client),
):
    """Linear trend of monthly income or expense totals"""
    aggregates = await client.get_monthly_aggregates(user_id, months)
    series = income_series(aggregates) if kind == "income" else expense_series(aggregates)
    if series is None:
        return TrendResult(direction="stable", percentage_change=0.0, predicted_next_value=0.0, confidence=0.0)
    return analyze_trend(series)


@router.get("/forecast", response_model=ForecastResult)
async def get_forecast(
    user_id: str = Query(..., min_length=1),
    historical_months: int = Query(6, ge=1, le=12),
    forecast_months: int = Query(settings.default_forecast_months, ge=1, le=6),
    client: AggregateClient = Depends(get_aggregate_client),
):
    """Project income, expense and balance for the coming months"""
    aggregates = await client.get_monthly_aggregates(user_id, historical_months)
    return forecast_cash_flow(aggregates, historical_months, forecast_months)


@router.get("/forecast/next-month", response_model=NextMonthPrediction)
async def get_next_month_prediction(
    user_id: str = Query(..., min_length=1),
    client: AggregateClient = Depends(get_aggregate_client),
):
    """Per-category expense prediction for next month"""
    aggregates = await client.get_monthly_aggregates(user_id, settings.history_window_months)
    return predict_next_month_expenses(category_series_map(aggregates, "expense"))


@router.post("/anomaly", response_model=AnomalyResult)
async def check_anomaly(
    request_body: AnomalyRequest,
    request: Request,
    client: AggregateClient = Depends(get_aggregate_client),
):
    """Compare an amount with the category's totals over the preceding months"""
    request_id = get_request_id(request)
    previous_month = add_months(date(request_body.year, request_body.month, 1), -1)
    aggregates = await client.get_monthly_aggregates(
        request_body.user_id,
        settings.history_window_months,
        until=previous_month,
    )

    result = detect_anomaly(
        category_series(aggregates, request_body.category),
        request_body.amount_cents,
        threshold=request_body.threshold or settings.anomaly_threshold,
        min_samples=request_body.min_samples or settings.anomaly_min_samples,
    )

    record_anomaly(result.is_anomalous)
    if result.is_anomalous:
        log_anomaly(request_id, request_body.user_id, request_body.category, request_body.amount_cents, result.average)
    return result


@router.get("/health-score", response_model=HealthScore)
async def get_health_score(
    user_id: str = Query(..., min_length=1),
    client: AggregateClient = Depends(get_aggregate_client),
):
    """
    Composite financial health score.

    Savings and debt ratios use the short health window; income
    diversification counts distinct income categories over the longer
    history window.
    """
    months = max(settings.history_window_months, settings.health_window_months)
    aggregates = await client.get_monthly_aggregates(user_id, months)
    position = await client.get_financial_position(user_id)

    window = trailing_window(aggregates, settings.health_window_months)
    income_sources = {
        t.category
        for a in trailing_window(aggregates, settings.history_window_months)
        for t in a.totals
        if t.type == "income" and t.actual_cents > 0
    }

    result = score_health(
        income=sum(a.income_cents for a in window),
        expense=sum(a.expense_cents for a in window),
        debt=position.debt_cents,
        liquid_assets=position.liquid_assets_cents,
        income_sources=len(income_sources),
        window_months=settings.health_window_months,
    )

    health_grade_counter.labels(grade=result.grade).inc()
    logging.info("Health score computed", extra={"user_id": user_id, "score": result.score, "grade": result.grade})
    return result


@router.get("/insights/problem-categories", response_model=List[ProblemCategory])
async def get_problem_categories(
    user_id: str = Query(..., min_length=1),
    client: AggregateClient = Depends(get_aggregate_client),
):
    """Expense categories running well above their recent average this month"""
    aggregates = await client.get_monthly_aggregates(user_id, settings.history_window_months + 1)
    if not aggregates:
        return []
    current, history = aggregates[-1], aggregates[:-1]
    current_totals = {t.category: t.actual_cents for t in current.totals if t.type == "expense"}
    return identify_problem_categories(current_totals, category_averages(history, "expense"))


@router.get("/insights/seasonal", response_model=List[SeasonalPattern])
async def get_seasonal_patterns(
    user_id: str = Query(..., min_length=1),
    months: int = Query(24, ge=12, le=60),
    client: AggregateClient = Depends(get_aggregate_client),
):
    """Calendar months with unusually high or low spending"""
    aggregates = await client.get_monthly_aggregates(user_id, months)
    return analyze_seasonal_patterns([a for a in aggregates if a.totals])


@router.get("/insights/savings-opportunities", response_model=List[SavingsOpportunity])
async def get_savings_opportunities(
    user_id: str = Query(..., min_length=1),
    client: AggregateClient = Depends(get_aggregate_client),
):
    """Categories spending above their recommended share of income"""
    aggregates = await client.get_monthly_aggregates(user_id, settings.history_window_months)
    incomes = [a.income_cents for a in aggregates if a.income_cents > 0]
    avg_income = sum(incomes) / len(incomes) if incomes else 0.0
    return identify_savings_opportunities(avg_income, category_averages(aggregates, "expense"))


@router.get("/insights/recommendations", response_model=List[str])
async def get_recommendations(
    user_id: str = Query(..., min_length=1),
    client: AggregateClient = Depends(get_aggregate_client),
):
    """Warnings about overspent categories and a negative projected balance"""
    aggregates = await client.get_monthly_aggregates(user_id, settings.history_window_months + 1)
    if not aggregates:
        return []
    latest, history = aggregates[-1], aggregates[:-1]

    averages = category_averages(history, "expense")
    averages.update(category_averages(history, "investment"))
    forecast = forecast_cash_flow(aggregates, historical_months=min(len(aggregates), 12), forecast_months=1)
    return generate_recommendations(latest, averages, forecast)
