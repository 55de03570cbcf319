"""Unit tests for spending insights"""

import pytest
from budget_analytics.domain.forecasting import forecast_cash_flow
from budget_analytics.domain.insights import (
    analyze_seasonal_patterns,
    generate_recommendations,
    identify_problem_categories,
    identify_savings_opportunities,
)


def test_problem_categories_severity():
    problems = identify_problem_categories(
        current={"Leisure": 160, "Transport": 135, "Groceries": 125, "Housing": 500},
        averages={"Leisure": 100, "Transport": 100, "Groceries": 100, "Housing": 500},
    )

    assert [(p.category, p.severity) for p in problems] == [
        ("Leisure", "high"),
        ("Transport", "medium"),
        ("Groceries", "low"),
    ]
    assert problems[0].percentage_increase == pytest.approx(60.0)


def test_problem_categories_ignores_new_category():
    assert identify_problem_categories(current={"Pets": 900}, averages={}) == []


def test_seasonal_patterns(month_factory):
    aggregates = [
        month_factory(2023, 1, Groceries=100),
        month_factory(2023, 6, Groceries=100),
        month_factory(2023, 12, Groceries=160),
        month_factory(2024, 1, Groceries=60),
    ]

    patterns = {p.month_name: p for p in analyze_seasonal_patterns(aggregates)}

    # January averages 80, June 100, December 160; overall ~113
    assert patterns["January"].average_expense == 80
    assert patterns["January"].pattern == "low"
    assert patterns["June"].pattern == "normal"
    assert patterns["December"].pattern == "high"


def test_seasonal_patterns_without_data():
    assert analyze_seasonal_patterns([]) == []


def test_savings_opportunities():
    opportunities = identify_savings_opportunities(
        avg_income=10000,
        category_averages={"Leisure": 1500, "Groceries": 1600, "Housing": 2000, "Pets": 5000},
    )

    assert [o.category for o in opportunities] == ["Leisure"]
    assert opportunities[0].benchmark == 500
    assert opportunities[0].potential_savings == 1000
    assert "15.0%" in opportunities[0].recommendation


def test_savings_opportunities_without_income():
    assert identify_savings_opportunities(0, {"Leisure": 1500}) == []


def test_recommendations_flag_overspending_and_negative_balance(month_factory):
    aggregates = [
        month_factory(2024, 1, income=1000, Leisure=100, Housing=800),
        month_factory(2024, 2, income=1000, Leisure=100, Housing=800),
        month_factory(2024, 3, income=500, Leisure=400, Housing=800),
    ]
    forecast = forecast_cash_flow(aggregates, historical_months=3, forecast_months=1)

    recommendations = generate_recommendations(aggregates[-1], {"Leisure": 100, "Housing": 800}, forecast)

    assert len(recommendations) == 2
    assert '"Leisure"' in recommendations[0]
    assert "negative" in recommendations[1]


def test_no_recommendations_for_steady_month(sample_aggregates):
    latest = sample_aggregates[-1]

    assert generate_recommendations(latest, {"Groceries": 300, "Housing": 500}) == []
