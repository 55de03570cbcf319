"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from budget_analytics.infrastructure.clients.aggregates import AggregateClient
from budget_analytics.infrastructure.database.repositories import SqlPatternRepository
from budget_analytics.infrastructure.database.session import get_db


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_aggregate_client() -> AggregateClient:
    """Provide aggregate provider client instance"""
    return AggregateClient()


def get_pattern_store(db: Session = Depends(get_db)) -> SqlPatternRepository:
    """Provide the learned pattern repository bound to the request session"""
    return SqlPatternRepository(db)
