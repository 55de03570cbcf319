"""Unit tests for cash-flow forecasting"""

import pytest
from budget_analytics.domain.exceptions import ContractViolationError
from budget_analytics.domain.forecasting import forecast_cash_flow, predict_next_month_expenses
from budget_analytics.domain.models import MonthlyAggregate, MonthlySeries


def test_forecast_follows_latest_month(sample_aggregates):
    result = forecast_cash_flow(sample_aggregates, historical_months=6, forecast_months=3)

    assert len(result.historical) == 6
    assert [(f.year, f.month) for f in result.forecasts] == [(2024, 7), (2024, 8), (2024, 9)]
    assert all(f.kind == "forecast" for f in result.forecasts)
    assert all(h.kind == "historical" for h in result.historical)


def test_forecast_projection_formula(sample_aggregates):
    """
    Expenses 600..850: avg 725, growth (850 - 600) / 6 = 41.67 per month.
    Income is flat at 1000.
    """
    result = forecast_cash_flow(sample_aggregates)

    assert result.averages.avg_expense == 725
    assert result.averages.avg_income == 1000
    assert result.averages.avg_balance == 275
    assert [f.expense for f in result.forecasts] == [767, 808, 850]
    assert [f.income for f in result.forecasts] == [1000, 1000, 1000]
    assert result.forecasts[0].balance == 233


def test_forecast_attaches_regression_trends(sample_aggregates):
    result = forecast_cash_flow(sample_aggregates)

    assert result.expense_trend.direction == "up"
    assert result.expense_trend.percentage_change == pytest.approx(41.67)
    assert result.expense_trend.predicted_next_value == pytest.approx(900)
    assert result.expense_trend.confidence == pytest.approx(1.0)
    assert result.income_trend.direction == "stable"


def test_forecast_uses_trailing_window(sample_aggregates):
    result = forecast_cash_flow(sample_aggregates, historical_months=2, forecast_months=1)

    assert [(h.year, h.month) for h in result.historical] == [(2024, 5), (2024, 6)]
    assert result.averages.avg_expense == 825


def test_forecast_wraps_year(month_factory):
    aggregates = [month_factory(2024, 11, income=100, Groceries=50), month_factory(2024, 12, income=100, Groceries=50)]

    result = forecast_cash_flow(aggregates, historical_months=2, forecast_months=2)

    assert [(f.year, f.month) for f in result.forecasts] == [(2025, 1), (2025, 2)]


def test_forecast_never_negative(month_factory):
    aggregates = [
        month_factory(2024, 1, income=100, Groceries=900),
        month_factory(2024, 2, income=100, Groceries=100),
    ]

    result = forecast_cash_flow(aggregates, historical_months=2, forecast_months=6)

    assert all(f.expense >= 0 for f in result.forecasts)
    assert result.forecasts[-1].expense == 0


def test_forecast_without_history():
    result = forecast_cash_flow([])

    assert result.historical == []
    assert result.forecasts == []
    assert result.averages.avg_balance == 0


def test_forecast_over_empty_months():
    aggregates = [MonthlyAggregate(2024, m) for m in (1, 2, 3)]

    result = forecast_cash_flow(aggregates, historical_months=3, forecast_months=1)

    assert result.forecasts[0].income == 0
    assert result.forecasts[0].expense == 0
    assert result.expense_trend.direction == "stable"


@pytest.mark.parametrize("historical,forecast", [(0, 3), (13, 3), (6, 0), (6, 7)])
def test_forecast_bounds(sample_aggregates, historical, forecast):
    with pytest.raises(ContractViolationError):
        forecast_cash_flow(sample_aggregates, historical_months=historical, forecast_months=forecast)


def test_predict_next_month_expenses():
    prediction = predict_next_month_expenses(
        {
            "Groceries": MonthlySeries("Groceries", (100, 200, 300)),
            "Housing": MonthlySeries("Housing", (500, 500, 500)),
        }
    )

    assert prediction.total == pytest.approx(900)
    assert [p.category for p in prediction.by_category] == ["Housing", "Groceries"]
    # Groceries fits perfectly, Housing is flat
    assert prediction.confidence == pytest.approx(0.5)


def test_predict_next_month_without_categories():
    prediction = predict_next_month_expenses({})

    assert prediction.total == 0
    assert prediction.by_category == []
    assert prediction.confidence == 0.0
