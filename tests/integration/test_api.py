"""Integration tests for API endpoints"""

import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient
from budget_analytics.api.main import run
from budget_analytics.config import settings
from budget_analytics.domain.exceptions import AggregateProviderError
from budget_analytics.domain.models import FinancialPosition

AGGREGATES = "budget_analytics.infrastructure.clients.aggregates.AggregateClient.get_monthly_aggregates"
CATEGORIES = "budget_analytics.infrastructure.clients.aggregates.AggregateClient.get_categories"
POSITION = "budget_analytics.infrastructure.clients.aggregates.AggregateClient.get_financial_position"


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "budget_classification_total" in response.text


def test_request_id_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


@patch("uvicorn.run")
def test_run_serves_app_with_uvicorn(mock_run):
    run()

    mock_run.assert_called_once_with("budget_analytics.api.main:app", host=settings.host, port=settings.port)


@patch(AGGREGATES)
def test_expense_trend(mock_aggregates: AsyncMock, client: TestClient, sample_aggregates):
    mock_aggregates.return_value = sample_aggregates

    response = client.get("/v1/trends/expense", params={"user_id": "user_1"})

    assert response.status_code == 200
    data = response.json()
    assert data["direction"] == "up"
    assert data["percentage_change"] == pytest.approx(41.67)
    assert data["predicted_next_value"] == pytest.approx(900)


def test_trend_rejects_unknown_kind(client: TestClient):
    response = client.get("/v1/trends/balance", params={"user_id": "user_1"})
    assert response.status_code == 422


@patch(AGGREGATES)
def test_forecast(mock_aggregates: AsyncMock, client: TestClient, sample_aggregates):
    mock_aggregates.return_value = sample_aggregates

    response = client.get("/v1/forecast", params={"user_id": "user_1", "forecast_months": 2})

    assert response.status_code == 200
    data = response.json()
    assert len(data["historical"]) == 6
    assert [f["expense"] for f in data["forecasts"]] == [767, 808]
    assert data["expense_trend"]["predicted_next_value"] == pytest.approx(900)


def test_forecast_bounds_validated(client: TestClient):
    response = client.get("/v1/forecast", params={"user_id": "user_1", "forecast_months": 7})
    assert response.status_code == 422


@patch(AGGREGATES)
def test_next_month_prediction(mock_aggregates: AsyncMock, client: TestClient, sample_aggregates):
    mock_aggregates.return_value = sample_aggregates

    response = client.get("/v1/forecast/next-month", params={"user_id": "user_1"})

    assert response.status_code == 200
    data = response.json()
    # Groceries continues to 400, Housing stays at 500
    assert data["total"] == pytest.approx(900)
    assert data["by_category"][0]["category"] == "Housing"


@patch(AGGREGATES)
def test_anomaly_check(mock_aggregates: AsyncMock, client: TestClient, sample_aggregates):
    mock_aggregates.return_value = sample_aggregates

    response = client.post(
        "/v1/anomaly",
        json={"user_id": "user_1", "category": "Groceries", "amount_cents": 1000, "year": 2024, "month": 7},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["is_anomalous"] is True
    assert data["average"] == pytest.approx(225)
    assert data["sample_count"] == 6


@patch(POSITION)
@patch(AGGREGATES)
def test_health_score(mock_aggregates: AsyncMock, mock_position: AsyncMock, client: TestClient, sample_aggregates):
    mock_aggregates.return_value = sample_aggregates
    mock_position.return_value = FinancialPosition(debt_cents=0, liquid_assets_cents=4800)

    response = client.get("/v1/health-score", params={"user_id": "user_1"})

    assert response.status_code == 200
    data = response.json()
    assert 0 <= data["score"] <= 100
    assert data["grade"] in ("A", "B", "C", "D", "F")
    assert [f["name"] for f in data["factors"]] == [
        "Savings rate",
        "Income diversification",
        "Debt control",
        "Emergency fund",
    ]


@patch(AGGREGATES)
def test_problem_categories(mock_aggregates: AsyncMock, client: TestClient, month_factory):
    mock_aggregates.return_value = [
        month_factory(2024, 1, Leisure=100),
        month_factory(2024, 2, Leisure=100),
        month_factory(2024, 3, Leisure=200),
    ]

    response = client.get("/v1/insights/problem-categories", params={"user_id": "user_1"})

    assert response.status_code == 200
    assert response.json()[0]["category"] == "Leisure"
    assert response.json()[0]["severity"] == "high"


@patch(CATEGORIES)
def test_classify(mock_categories: AsyncMock, client: TestClient, categories):
    mock_categories.return_value = categories

    response = client.post(
        "/v1/classification/classify",
        json={"user_id": "user_1", "description": "CITY SUPERMARKET", "amount_cents": -4500},
    )

    assert response.status_code == 200
    data = response.json()
    assert data[0]["category_name"] == "Groceries"
    assert data[0]["confidence"] == 70


@patch(CATEGORIES)
def test_learn_then_classify(mock_categories: AsyncMock, client: TestClient, categories):
    mock_categories.return_value = categories

    for expected_hits in (1, 2):
        response = client.post(
            "/v1/classification/learn",
            json={"user_id": "user_1", "description": "ACME CORP 0042", "amount_cents": -5000, "category_id": 5},
        )
        assert response.status_code == 200
        assert response.json() == {"success": True, "signature": "acme corp", "hit_count": expected_hits}

    response = client.post(
        "/v1/classification/classify",
        json={"user_id": "user_1", "description": "Acme Corp 7781", "amount_cents": -5000},
    )
    assert response.json()[0] == {"category_name": "Leisure", "category_type": "expense", "confidence": 60}

    stats = client.get("/v1/classification/stats", params={"user_id": "user_1"}).json()
    assert stats["total_patterns"] == 1
    assert stats["top_categories"] == [{"category_name": "Leisure", "count": 2}]


@patch(CATEGORIES)
def test_learn_unknown_category(mock_categories: AsyncMock, client: TestClient, categories):
    mock_categories.return_value = categories

    response = client.post(
        "/v1/classification/learn",
        json={"user_id": "user_1", "description": "ACME CORP", "amount_cents": -5000, "category_id": 99},
    )

    assert response.status_code == 400


@patch(CATEGORIES)
@patch(AGGREGATES)
def test_import_transactions(
    mock_aggregates: AsyncMock,
    mock_categories: AsyncMock,
    client: TestClient,
    categories,
    sample_aggregates,
):
    mock_aggregates.return_value = sample_aggregates
    mock_categories.return_value = categories

    response = client.post(
        "/v1/transactions/import",
        json={
            "user_id": "user_1",
            "transactions": [
                {"description": "CITY SUPERMARKET", "amount_cents": -100000, "date": "2024-07-05"},
                {"description": "PAYROLL ACME", "amount_cents": 300000, "date": "2024-07-01"},
                {"description": "Weekly shop", "amount_cents": -200, "date": "2024-07-08", "category_hint": "Groceries"},
            ],
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["anomaly_count"] == 1
    shop, payroll, hinted = data["transactions"]
    assert shop["anomaly"]["is_anomalous"] is True
    assert payroll["suggestions"][0]["category_name"] == "Salary"
    assert payroll["anomaly"] is None
    assert hinted["suggestions"][0]["confidence"] == 100
    assert hinted["anomaly"]["is_anomalous"] is False


def test_import_requires_transactions(client: TestClient):
    response = client.post("/v1/transactions/import", json={"user_id": "user_1", "transactions": []})
    assert response.status_code == 422


@patch(CATEGORIES)
def test_provider_failure_returns_503(mock_categories: AsyncMock, client: TestClient):
    mock_categories.side_effect = AggregateProviderError("Aggregate provider timeout after 5.0s")

    response = client.post(
        "/v1/classification/classify",
        json={"user_id": "user_1", "description": "UBER", "amount_cents": -100},
    )

    assert response.status_code == 503


@patch(AGGREGATES)
def test_savings_rate_simulation(mock_aggregates: AsyncMock, client: TestClient, sample_aggregates):
    mock_aggregates.return_value = sample_aggregates

    response = client.post(
        "/v1/simulations/savings-rate",
        json={"user_id": "user_1", "savings_rate_percent": 20, "months": 6},
    )

    assert response.status_code == 200
    data = response.json()
    assert len(data["months"]) == 6
    assert data["summary"]["final_balance"] == pytest.approx(1200)


@patch(AGGREGATES)
def test_goal_simulation_unreachable(mock_aggregates: AsyncMock, client: TestClient, month_factory):
    mock_aggregates.return_value = [month_factory(2024, 1, income=500, Housing=800)]

    response = client.post("/v1/simulations/goal", json={"user_id": "user_1", "goal_amount_cents": 10000})

    assert response.status_code == 422


def test_goal_simulation_with_explicit_savings(client: TestClient):
    response = client.post(
        "/v1/simulations/goal",
        json={"user_id": "user_1", "goal_amount_cents": 10000, "monthly_savings_cents": 3000},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["months_needed"] == 4
    assert data["breakdown"][-1]["accumulated"] == 10000


def test_retirement_simulation(client: TestClient):
    response = client.post(
        "/v1/simulations/retirement",
        json={"current_age": 30, "retirement_age": 40, "monthly_contribution_cents": 1000, "monthly_return_percent": 0},
    )

    assert response.status_code == 200
    assert response.json()["estimated_value"] == 120000


def test_retirement_age_order_rejected(client: TestClient):
    response = client.post(
        "/v1/simulations/retirement",
        json={"current_age": 65, "retirement_age": 60, "monthly_contribution_cents": 1000},
    )

    assert response.status_code == 400


@patch(AGGREGATES)
def test_compare_scenarios(mock_aggregates: AsyncMock, client: TestClient, sample_aggregates):
    mock_aggregates.return_value = sample_aggregates

    response = client.post(
        "/v1/simulations/compare",
        json={
            "user_id": "user_1",
            "scenarios": [
                {"name": "Base", "months": 3},
                {"name": "Cut back", "months": 3, "expense_change_percent": -10},
            ],
        },
    )

    assert response.status_code == 200
    names = [c["name"] for c in response.json()]
    assert names == ["Base", "Cut back"]
