"""What-if simulation endpoints driven by the user's historical averages"""

import logging
from typing import List

from fastapi import APIRouter, Depends

from budget_analytics.api.dependencies import get_aggregate_client
from budget_analytics.api.v1.schemas import (
    CategoryReductionRequest,
    CompareRequest,
    GoalRequest,
    IncomeIncreaseRequest,
    RetirementRequest,
    SavingsRateRequest,
    ScenarioRequest,
    ScenarioSchema,
)
from budget_analytics.config import settings
from budget_analytics.domain.aggregates import build_baseline
from budget_analytics.domain.models import (
    CashFlowBaseline,
    CategoryReductionOutcome,
    GoalTimeline,
    IncomeIncreaseOutcome,
    RetirementProjection,
    Scenario,
    ScenarioComparison,
    SimulationResult,
)
from budget_analytics.domain.simulation import (
    compare_scenarios,
    simulate_category_reduction,
    simulate_complete_scenario,
    simulate_goal_achievement,
    simulate_income_increase,
    simulate_retirement,
    simulate_savings_rate,
)
from budget_analytics.infrastructure.clients.aggregates import AggregateClient
from budget_analytics.infrastructure.observability.metrics import simulation_counter

router = APIRouter()


async def _baseline(client: AggregateClient, user_id: str) -> CashFlowBaseline:
    aggregates = await client.get_monthly_aggregates(user_id, settings.history_window_months)
    baseline = build_baseline(aggregates)
    logging.info(
        "Simulation baseline",
        extra={
            "user_id": user_id,
            "avg_income": baseline.avg_income,
            "avg_expense": baseline.avg_expense,
        },
    )
    return baseline


def _to_scenario(schema: ScenarioSchema) -> Scenario:
    return Scenario(
        name=schema.name,
        months=schema.months,
        income_change_percent=schema.income_change_percent,
        expense_change_percent=schema.expense_change_percent,
        new_expense_cents=schema.new_expense_cents,
    )


@router.post("/savings-rate", response_model=SimulationResult)
async def run_savings_rate(
    request_body: SavingsRateRequest,
    client: AggregateClient = Depends(get_aggregate_client),
):
    baseline = await _baseline(client, request_body.user_id)
    simulation_counter.labels(kind="savings_rate").inc()
    return simulate_savings_rate(baseline, request_body.savings_rate_percent, request_body.months)


@router.post("/category-reduction", response_model=CategoryReductionOutcome)
async def run_category_reduction(
    request_body: CategoryReductionRequest,
    client: AggregateClient = Depends(get_aggregate_client),
):
    baseline = await _baseline(client, request_body.user_id)
    simulation_counter.labels(kind="category_reduction").inc()
    return simulate_category_reduction(
        baseline,
        request_body.category,
        request_body.reduction_percent,
        request_body.months,
    )


@router.post("/income-increase", response_model=IncomeIncreaseOutcome)
async def run_income_increase(
    request_body: IncomeIncreaseRequest,
    client: AggregateClient = Depends(get_aggregate_client),
):
    baseline = await _baseline(client, request_body.user_id)
    simulation_counter.labels(kind="income_increase").inc()
    return simulate_income_increase(baseline, request_body.increase_percent, request_body.months)


@router.post("/goal", response_model=GoalTimeline)
async def run_goal(
    request_body: GoalRequest,
    client: AggregateClient = Depends(get_aggregate_client),
):
    """
    Months needed to reach a savings goal.

    When monthly_savings_cents is omitted the rate comes from the user's
    average income minus average expense. A non-positive rate is a 422.
    """
    baseline = None
    if request_body.monthly_savings_cents is None:
        baseline = await _baseline(client, request_body.user_id)

    simulation_counter.labels(kind="goal").inc()
    return simulate_goal_achievement(
        request_body.goal_amount_cents,
        monthly_savings=request_body.monthly_savings_cents,
        baseline=baseline,
    )


@router.post("/retirement", response_model=RetirementProjection)
async def run_retirement(request_body: RetirementRequest):
    simulation_counter.labels(kind="retirement").inc()
    return simulate_retirement(
        request_body.current_age,
        request_body.retirement_age,
        request_body.monthly_contribution_cents,
        request_body.monthly_return_percent,
    )


@router.post("/scenario", response_model=SimulationResult)
async def run_scenario(
    request_body: ScenarioRequest,
    client: AggregateClient = Depends(get_aggregate_client),
):
    baseline = await _baseline(client, request_body.user_id)
    simulation_counter.labels(kind="scenario").inc()
    return simulate_complete_scenario(baseline, _to_scenario(request_body.scenario))


@router.post("/compare", response_model=List[ScenarioComparison])
async def run_compare(
    request_body: CompareRequest,
    client: AggregateClient = Depends(get_aggregate_client),
):
    """Run several scenarios against the same baseline"""
    baseline = await _baseline(client, request_body.user_id)
    simulation_counter.labels(kind="compare").inc()
    return compare_scenarios(baseline, [_to_scenario(s) for s in request_body.scenarios])
