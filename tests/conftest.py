"""Pytest fixtures for testing"""

import pytest
from typing import Generator, List
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from budget_analytics.api.main import create_app
from budget_analytics.infrastructure.database.models import Base
from budget_analytics.infrastructure.database.session import get_db
from budget_analytics.domain.models import Category, CategoryTotal, MonthlyAggregate


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def categories() -> List[Category]:
    """A user's category directory"""
    return [
        Category(id=1, name="Salary", type="income"),
        Category(id=2, name="Groceries", type="expense"),
        Category(id=3, name="Transport", type="expense"),
        Category(id=4, name="Housing", type="expense"),
        Category(id=5, name="Leisure", type="expense"),
        Category(id=6, name="Investments", type="investment"),
    ]


def make_month(year: int, month: int, income: int = 0, **expenses: int) -> MonthlyAggregate:
    """Monthly aggregate with a salary line and one line per expense keyword"""
    totals = []
    if income:
        totals.append(CategoryTotal("Salary", "income", income, income))
    for name, amount in expenses.items():
        totals.append(CategoryTotal(name, "expense", amount, amount))
    return MonthlyAggregate(year=year, month=month, totals=tuple(totals))


@pytest.fixture
def month_factory():
    """Expose make_month to tests"""
    return make_month


@pytest.fixture
def sample_aggregates() -> List[MonthlyAggregate]:
    """
    Six months of steady income and rising expenses.

    Expense totals run 600, 650, 700, 750, 800, 850 (in whole units of
    cents for readability), split across groceries and housing.
    """
    return [
        make_month(2024, month, income=1000, Groceries=100 + 50 * i, Housing=500)
        for i, month in enumerate(range(1, 7))
    ]
