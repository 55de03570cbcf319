"""Build monthly series and baselines from provider aggregates"""

from typing import Dict, List, Optional, Sequence

from budget_analytics.domain.models import CashFlowBaseline, MonthlyAggregate, MonthlySeries


def sort_aggregates(aggregates: Sequence[MonthlyAggregate]) -> List[MonthlyAggregate]:
    """Oldest month first"""
    return sorted(aggregates, key=lambda a: (a.year, a.month))


def trailing_window(aggregates: Sequence[MonthlyAggregate], months: int) -> List[MonthlyAggregate]:
    """The most recent `months` aggregates, oldest first"""
    return sort_aggregates(aggregates)[-months:]


def income_series(aggregates: Sequence[MonthlyAggregate]) -> Optional[MonthlySeries]:
    ordered = sort_aggregates(aggregates)
    if not ordered:
        return None
    return MonthlySeries("income", tuple(a.income_cents for a in ordered))


def expense_series(aggregates: Sequence[MonthlyAggregate]) -> Optional[MonthlySeries]:
    ordered = sort_aggregates(aggregates)
    if not ordered:
        return None
    return MonthlySeries("expense", tuple(a.expense_cents for a in ordered))


def category_series(aggregates: Sequence[MonthlyAggregate], category: str) -> Optional[MonthlySeries]:
    """
    Series of actual totals for one category.

    Only months in which the category has entries contribute, so a category
    first used last month yields a single-point series rather than a run of
    zeros.
    """
    values = []
    for aggregate in sort_aggregates(aggregates):
        total = aggregate.category_total(category)
        if total is not None:
            values.append(total)
    if not values:
        return None
    return MonthlySeries(category, tuple(values))


def category_series_map(
    aggregates: Sequence[MonthlyAggregate],
    category_type: str = "expense",
) -> Dict[str, MonthlySeries]:
    """One series per category of the given type, keyed by category name"""
    names = []
    for aggregate in sort_aggregates(aggregates):
        for total in aggregate.totals:
            if total.type == category_type and total.category not in names:
                names.append(total.category)

    series = {}
    for name in names:
        built = category_series(aggregates, name)
        if built is not None:
            series[name] = built
    return series


def category_averages(
    aggregates: Sequence[MonthlyAggregate],
    category_type: str = "expense",
) -> Dict[str, float]:
    """Mean monthly spend per category over the months it was used"""
    return {name: s.mean() for name, s in category_series_map(aggregates, category_type).items()}


def build_baseline(aggregates: Sequence[MonthlyAggregate]) -> CashFlowBaseline:
    """
    Trailing-window averages for the scenario simulator.

    Income and expense average over every month in the window (months with
    no entries count as zero); category averages spread each category's
    total over the same window so that they sum to the expense average.
    """
    if not aggregates:
        return CashFlowBaseline(avg_income=0.0, avg_expense=0.0, category_averages={})

    window = len(aggregates)
    avg_income = sum(a.income_cents for a in aggregates) / window
    avg_expense = sum(a.expense_cents for a in aggregates) / window

    per_category: Dict[str, float] = {}
    for aggregate in aggregates:
        for total in aggregate.totals:
            if total.type == "expense":
                per_category[total.category] = per_category.get(total.category, 0) + total.actual_cents

    return CashFlowBaseline(
        avg_income=avg_income,
        avg_expense=avg_expense,
        category_averages={name: amount / window for name, amount in per_category.items()},
    )
