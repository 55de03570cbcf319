"""What-if scenario simulation on top of historical cash-flow averages"""

import logging
import math
from datetime import date
from typing import List, Optional, Sequence

from budget_analytics.domain.exceptions import ContractViolationError, InvalidScenarioError
from budget_analytics.domain.models import (
    CashFlowBaseline,
    CategoryReductionOutcome,
    GoalMonth,
    GoalTimeline,
    IncomeIncreaseOutcome,
    RetirementProjection,
    Scenario,
    ScenarioComparison,
    SimulationMonth,
    SimulationResult,
    SimulationSummary,
)
from budget_analytics.utils.date_utils import add_months

SAFE_WITHDRAWAL_RATE = 0.04  # Annual share of the retirement pot withdrawn
DEFAULT_MONTHLY_RETURN_PERCENT = 0.8  # ~10% a year


def _require_months(months: int) -> None:
    if months < 1:
        raise ContractViolationError(f"months must be a positive integer, got {months}")


def _require_percent(name: str, value: float, low: float = 0.0, high: Optional[float] = 100.0) -> None:
    if value < low or (high is not None and value > high):
        bound = f"{low}-{high}" if high is not None else f">= {low}"
        raise ContractViolationError(f"{name} must be {bound}, got {value}")


def _month_start(start_date: Optional[date]) -> date:
    start = start_date or date.today()
    return start.replace(day=1)


def simulate_scenario(
    monthly_income: float,
    monthly_expense: float,
    months: int,
    start_date: Optional[date] = None,
) -> SimulationResult:
    """
    Project constant monthly savings (income - expense) forward.

    Savings may be negative; the cumulative balance then falls. No ceiling is
    applied here, capping is specific to goal timelines.
    """
    _require_months(months)
    start = _month_start(start_date)

    savings = monthly_income - monthly_expense
    months_data: List[SimulationMonth] = []
    balance = 0.0

    for i in range(months):
        balance += savings
        months_data.append(
            SimulationMonth(
                month=add_months(start, i),
                income=monthly_income,
                expenses=monthly_expense,
                savings=savings,
                cumulative_balance=balance,
            )
        )

    return SimulationResult(
        months=months_data,
        summary=SimulationSummary(
            total_income=monthly_income * months,
            total_expenses=monthly_expense * months,
            total_savings=balance,
            final_balance=balance,
        ),
    )


def simulate_savings_rate(
    baseline: CashFlowBaseline,
    savings_rate_percent: float,
    months: int = 12,
    start_date: Optional[date] = None,
) -> SimulationResult:
    """What if I saved savings_rate_percent of my average income every month?"""
    _require_percent("savings_rate_percent", savings_rate_percent)

    target_savings = baseline.avg_income * savings_rate_percent / 100
    new_expense = baseline.avg_income - target_savings
    return simulate_scenario(baseline.avg_income, new_expense, months, start_date)


def simulate_category_reduction(
    baseline: CashFlowBaseline,
    category: str,
    reduction_percent: float,
    months: int = 12,
    start_date: Optional[date] = None,
) -> CategoryReductionOutcome:
    """
    What if I cut one category by reduction_percent?

    Runs the baseline and the reduced plan side by side; total_savings is the
    difference between the two, i.e. the net benefit of the cut.
    """
    _require_percent("reduction_percent", reduction_percent)

    avg_category = baseline.category_averages.get(category, 0.0)
    avg_other = max(0.0, baseline.avg_expense - avg_category)
    expense_before = avg_category + avg_other
    expense_after = expense_before - avg_category * reduction_percent / 100

    before = simulate_scenario(baseline.avg_income, expense_before, months, start_date)
    after = simulate_scenario(baseline.avg_income, expense_after, months, start_date)

    return CategoryReductionOutcome(
        before=before,
        after=after,
        total_savings=after.summary.total_savings - before.summary.total_savings,
    )


def simulate_income_increase(
    baseline: CashFlowBaseline,
    increase_percent: float,
    months: int = 12,
    start_date: Optional[date] = None,
) -> IncomeIncreaseOutcome:
    """What if my income rose by increase_percent with expenses unchanged?"""
    _require_percent("increase_percent", increase_percent, high=None)

    new_income = baseline.avg_income * (1 + increase_percent / 100)
    before = simulate_scenario(baseline.avg_income, baseline.avg_expense, months, start_date)
    after = simulate_scenario(new_income, baseline.avg_expense, months, start_date)

    return IncomeIncreaseOutcome(
        before=before,
        after=after,
        additional_savings=after.summary.total_savings - before.summary.total_savings,
    )


def simulate_goal_achievement(
    goal_amount: float,
    monthly_savings: Optional[float] = None,
    baseline: Optional[CashFlowBaseline] = None,
    start_date: Optional[date] = None,
) -> GoalTimeline:
    """
    How many months until goal_amount is saved?

    Without an explicit monthly_savings the rate is derived from the
    baseline (average income minus average expense). The breakdown caps the
    last month's contribution so the accumulated amount lands exactly on
    the goal.

    Raises:
        ContractViolationError: goal_amount <= 0, or neither savings nor baseline given
        InvalidScenarioError: the monthly savings rate is not positive
    """
    if goal_amount <= 0:
        raise ContractViolationError(f"goal_amount must be positive, got {goal_amount}")

    if monthly_savings is None:
        if baseline is None:
            raise ContractViolationError("Either monthly_savings or a baseline is required")
        monthly_savings = baseline.avg_income - baseline.avg_expense

    if monthly_savings <= 0:
        raise InvalidScenarioError(
            f"Monthly savings of {monthly_savings} can never reach a goal of {goal_amount}"
        )

    months_needed = math.ceil(goal_amount / monthly_savings)
    start = _month_start(start_date)

    breakdown: List[GoalMonth] = []
    accumulated = 0.0
    for i in range(1, months_needed + 1):
        if i == months_needed:
            saved = goal_amount - accumulated
            accumulated = goal_amount
        else:
            saved = monthly_savings
            accumulated = min(monthly_savings * i, goal_amount)
        breakdown.append(
            GoalMonth(
                month=add_months(start, i),
                saved=saved,
                accumulated=accumulated,
                progress=min(100.0, accumulated / goal_amount * 100),
            )
        )

    return GoalTimeline(
        months_needed=months_needed,
        achievement_date=add_months(start, months_needed),
        monthly_savings=monthly_savings,
        breakdown=breakdown,
    )


def simulate_retirement(
    current_age: int,
    retirement_age: int,
    monthly_contribution: float,
    monthly_return_percent: float = DEFAULT_MONTHLY_RETURN_PERCENT,
) -> RetirementProjection:
    """
    Compound a fixed monthly contribution until retirement.

    Each month: value = (value + contribution) * (1 + rate). The monthly
    income estimate follows the 4% annual withdrawal rule.
    """
    if retirement_age <= current_age:
        raise ContractViolationError(
            f"retirement_age ({retirement_age}) must be greater than current_age ({current_age})"
        )
    if monthly_contribution < 0:
        raise ContractViolationError(f"monthly_contribution must be >= 0, got {monthly_contribution}")
    if monthly_return_percent <= -100:
        raise ContractViolationError(f"monthly_return_percent must be > -100, got {monthly_return_percent}")

    months = (retirement_age - current_age) * 12
    rate = monthly_return_percent / 100

    value = 0.0
    for _ in range(months):
        value = (value + monthly_contribution) * (1 + rate)

    return RetirementProjection(
        months_until_retirement=months,
        total_contributions=monthly_contribution * months,
        estimated_value=round(value, 2),
        monthly_income=round(value * SAFE_WITHDRAWAL_RATE / 12, 2),
    )


def simulate_complete_scenario(
    baseline: CashFlowBaseline,
    scenario: Scenario,
    start_date: Optional[date] = None,
) -> SimulationResult:
    """Apply percentage changes and an optional new recurring expense to the baseline"""
    _require_percent("income_change_percent", scenario.income_change_percent, low=-100.0, high=None)
    _require_percent("expense_change_percent", scenario.expense_change_percent, low=-100.0, high=None)
    if scenario.new_expense_cents < 0:
        raise ContractViolationError(f"new_expense_cents must be >= 0, got {scenario.new_expense_cents}")

    income = baseline.avg_income * (1 + scenario.income_change_percent / 100)
    expense = baseline.avg_expense * (1 + scenario.expense_change_percent / 100)
    expense += scenario.new_expense_cents

    return simulate_scenario(income, expense, scenario.months, start_date)


def compare_scenarios(
    baseline: CashFlowBaseline,
    scenarios: Sequence[Scenario],
    start_date: Optional[date] = None,
) -> List[ScenarioComparison]:
    """Run each scenario independently against the same baseline"""
    results = [
        ScenarioComparison(name=s.name, result=simulate_complete_scenario(baseline, s, start_date))
        for s in scenarios
    ]
    logging.debug("Compared scenarios", extra={"scenario_count": len(results)})
    return results
