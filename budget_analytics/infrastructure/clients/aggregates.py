"""Aggregate provider HTTP client for monthly totals, categories and balances"""

import httpx
from datetime import date
from typing import Any, Dict, List, Optional
from budget_analytics.domain.models import Category, CategoryTotal, FinancialPosition, MonthlyAggregate
from budget_analytics.domain.exceptions import AggregateProviderError, DomainException
from budget_analytics.config import settings
from budget_analytics.utils.date_utils import trailing_months


class AggregateClient:
    """Client for the storage service that owns entries, categories and balances"""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = base_url or settings.aggregate_api_base
        self.timeout = timeout or settings.http_timeout_seconds

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        GET a JSON document from the provider.

        Raises:
            AggregateProviderError: On timeout or HTTP errors
        """
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(f"{self.base_url}{path}", params=params)
                response.raise_for_status()
                return response.json()
            except httpx.TimeoutException as e:
                raise AggregateProviderError(f"Aggregate provider timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise AggregateProviderError(f"Aggregate provider error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise AggregateProviderError(f"Aggregate provider unreachable: {e}") from e
            except ValueError as e:
                raise AggregateProviderError(f"Invalid JSON from aggregate provider: {e}") from e

    async def get_monthly_aggregates(
        self,
        user_id: str,
        months: int,
        until: Optional[date] = None,
    ) -> List[MonthlyAggregate]:
        """
        Fetch per-category monthly totals for the `months` months ending at `until`.

        Months the provider has no entries for are returned as empty
        aggregates so every series covers the whole window.
        """
        until = until or date.today()
        data = await self._get(
            "/aggregates/monthly",
            {"user_id": user_id, "months": months, "year": until.year, "month": until.month},
        )

        try:
            by_month = {}
            for item in data.get("months", []):
                aggregate = MonthlyAggregate(
                    year=item["year"],
                    month=item["month"],
                    totals=tuple(
                        CategoryTotal(
                            category=t["category"],
                            type=t["type"],
                            planned_cents=t.get("planned_cents", 0),
                            actual_cents=t["actual_cents"],
                        )
                        for t in item.get("totals", [])
                    ),
                )
                by_month[(aggregate.year, aggregate.month)] = aggregate
        except (KeyError, TypeError, DomainException) as e:
            raise AggregateProviderError(f"Invalid aggregate data from provider: {e}") from e

        return [
            by_month.get((year, month), MonthlyAggregate(year=year, month=month))
            for year, month in trailing_months(until.year, until.month, months)
        ]

    async def get_categories(self, user_id: str) -> List[Category]:
        """Fetch the user's category directory"""
        data = await self._get("/categories", {"user_id": user_id})
        try:
            return [
                Category(id=c["id"], name=c["name"], type=c["type"])
                for c in data.get("categories", [])
            ]
        except (KeyError, TypeError) as e:
            raise AggregateProviderError(f"Invalid category data from provider: {e}") from e

    async def get_financial_position(self, user_id: str) -> FinancialPosition:
        """Fetch outstanding debt and liquid assets"""
        data = await self._get("/position", {"user_id": user_id})
        try:
            return FinancialPosition(
                debt_cents=data["debt_cents"],
                liquid_assets_cents=data["liquid_assets_cents"],
            )
        except (KeyError, TypeError) as e:
            raise AggregateProviderError(f"Invalid position data from provider: {e}") from e
