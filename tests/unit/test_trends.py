"""Unit tests for trend analysis"""

import pytest
from decimal import Decimal
from budget_analytics.domain.models import MonthlySeries
from budget_analytics.domain.trends import analyze_trend
from budget_analytics.domain.exceptions import ContractViolationError


def test_rising_series_is_up_with_full_confidence():
    """Perfectly linear growth: R² = 1 and prediction continues the line"""
    result = analyze_trend(MonthlySeries("expense", (600, 650, 700, 750, 800, 850)))

    assert result.direction == "up"
    assert result.percentage_change == pytest.approx(41.67)
    assert result.predicted_next_value == pytest.approx(900)
    assert result.confidence == pytest.approx(1.0)


def test_falling_series_is_down():
    result = analyze_trend(MonthlySeries("expense", (1000, 900, 800)))

    assert result.direction == "down"
    assert result.percentage_change == pytest.approx(-20.0)
    assert result.predicted_next_value == pytest.approx(700)


def test_change_inside_dead_band_is_stable():
    """A 4% move is noise"""
    result = analyze_trend(MonthlySeries("income", (1000, 1010, 1040)))

    assert result.direction == "stable"
    assert result.percentage_change == pytest.approx(4.0)


def test_flat_series_has_zero_confidence():
    result = analyze_trend(MonthlySeries("income", (500, 500, 500, 500)))

    assert result.direction == "stable"
    assert result.confidence == 0.0
    assert result.predicted_next_value == pytest.approx(500)


def test_single_point_series():
    result = analyze_trend(MonthlySeries("income", (300,)))

    assert result.direction == "stable"
    assert result.percentage_change == 0.0
    assert result.predicted_next_value == 300
    assert result.confidence == 0.0


def test_prediction_never_negative():
    """Steep decline would extrapolate below zero"""
    result = analyze_trend(MonthlySeries("expense", (300, 100, 0)))

    assert result.predicted_next_value == 0.0
    assert result.direction == "down"


def test_zero_first_value_reports_no_percentage():
    """Growth from nothing has no defined percentage, so direction stays stable"""
    result = analyze_trend(MonthlySeries("expense", (0, 100, 200)))

    assert result.percentage_change == 0.0
    assert result.direction == "stable"
    assert result.predicted_next_value == pytest.approx(300)
    assert result.confidence == pytest.approx(1.0)


def test_confidence_between_zero_and_one_for_noisy_series():
    result = analyze_trend(MonthlySeries("expense", (100, 300, 150, 400, 200)))

    assert 0.0 <= result.confidence <= 1.0


def test_custom_dead_band():
    series = MonthlySeries("income", (1000, 1080))

    assert analyze_trend(series).direction == "up"
    assert analyze_trend(series, dead_band=10.0).direction == "stable"



def test_decimal_series():
    """Decimal amounts in major units trend like their cent equivalents"""
    result = analyze_trend(MonthlySeries("expense", (Decimal("6.00"), Decimal("6.50"), Decimal("7.00"))))

    assert result.direction == "up"
    assert result.percentage_change == pytest.approx(16.67)
    assert result.predicted_next_value == pytest.approx(7.5)
    assert result.confidence == pytest.approx(1.0)


def test_decimal_mean_is_exact():
    series = MonthlySeries("expense", (Decimal("10.10"), Decimal("10.20")))

    assert series.mean() == Decimal("10.15")
    assert isinstance(series.mean(), Decimal)


def test_integer_mean_is_float():
    assert MonthlySeries("expense", (1, 2)).mean() == 1.5

@pytest.mark.parametrize(
    "values",
    [
        (),
        (100, -5),
        (100, float("nan")),
        (100, float("inf")),
        (True, 100),
        ("100",),
        (Decimal("100"), Decimal("-0.01")),
        (Decimal("100"), Decimal("NaN")),
    ],
)
def test_invalid_series_rejected(values):
    with pytest.raises(ContractViolationError):
        MonthlySeries("expense", values)
