"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date
from typing import List, Literal, Optional


class ClassifyRequest(BaseModel):
    """Request body for POST /v1/classification/classify"""

    user_id: str = Field(..., min_length=1, description="User identifier")
    description: str = Field(..., min_length=1)
    amount_cents: int = Field(..., description="Signed amount: positive = money in")
    category: Optional[str] = Field(None, description="Category hint supplied by the user")


class SuggestionSchema(BaseModel):
    category_name: str
    category_type: Literal["income", "expense", "investment"]
    confidence: float = Field(..., ge=0, le=100)


class LearnRequest(BaseModel):
    """Request body for POST /v1/classification/learn"""

    user_id: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    amount_cents: int
    category_id: int
    source: Literal["manual", "confirmed"] = "manual"


class LearnResponse(BaseModel):
    success: bool
    signature: str
    hit_count: int


class StatsResponse(BaseModel):
    total_patterns: int
    high_confidence_count: int
    top_categories: List[dict]


class TransactionSchema(BaseModel):
    """Raw transaction as imported from a bank statement"""

    description: str = Field(..., min_length=1)
    amount_cents: int
    date: date
    category_hint: Optional[str] = None


class ImportRequest(BaseModel):
    """Request body for POST /v1/transactions/import"""

    user_id: str = Field(..., min_length=1)
    transactions: List[TransactionSchema] = Field(..., min_length=1)


class AnomalySchema(BaseModel):
    is_anomalous: bool
    average: float
    sample_count: int
    deviation_ratio: float


class ImportedTransaction(BaseModel):
    description: str
    amount_cents: int
    date: date
    suggestions: List[SuggestionSchema]
    anomaly: Optional[AnomalySchema] = None


class ImportResponse(BaseModel):
    user_id: str
    transactions: List[ImportedTransaction]
    anomaly_count: int


class AnomalyRequest(BaseModel):
    """Request body for POST /v1/anomaly"""

    user_id: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    amount_cents: int = Field(..., ge=0)
    year: int = Field(..., ge=1970)
    month: int = Field(..., ge=1, le=12)
    threshold: Optional[float] = Field(None, gt=0)
    min_samples: Optional[int] = Field(None, ge=1)


class SavingsRateRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    savings_rate_percent: float = Field(..., ge=0, le=100)
    months: int = Field(12, ge=1)


class CategoryReductionRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    reduction_percent: float = Field(..., ge=0, le=100)
    months: int = Field(12, ge=1)


class IncomeIncreaseRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    increase_percent: float = Field(..., ge=0)
    months: int = Field(12, ge=1)


class GoalRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    goal_amount_cents: int = Field(..., gt=0)
    monthly_savings_cents: Optional[int] = Field(None, description="Derived from history when omitted")


class RetirementRequest(BaseModel):
    current_age: int = Field(..., ge=0)
    retirement_age: int = Field(..., gt=0)
    monthly_contribution_cents: int = Field(..., ge=0)
    monthly_return_percent: float = Field(0.8, gt=-100)


class ScenarioSchema(BaseModel):
    name: str = Field(..., min_length=1)
    months: int = Field(12, ge=1)
    income_change_percent: float = Field(0.0, ge=-100)
    expense_change_percent: float = Field(0.0, ge=-100)
    new_expense_cents: int = Field(0, ge=0)


class ScenarioRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    scenario: ScenarioSchema


class CompareRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    scenarios: List[ScenarioSchema] = Field(..., min_length=1)
