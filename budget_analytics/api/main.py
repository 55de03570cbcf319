"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from budget_analytics.api.middleware import RequestIDMiddleware, MetricsMiddleware
from budget_analytics.api.v1 import analytics, classification, simulations
from budget_analytics.domain.exceptions import (
    AggregateProviderError,
    ContractViolationError,
    InvalidScenarioError,
)
from budget_analytics.infrastructure.database.models import Base
from budget_analytics.infrastructure.database.session import engine
from budget_analytics.infrastructure.observability.logging import setup_logging
from budget_analytics.infrastructure.observability.metrics import provider_failures_counter
from budget_analytics.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


async def contract_violation_handler(request: Request, exc: ContractViolationError) -> JSONResponse:
    logging.warning(f"Rejected parameters: {exc}", extra={"request_id": _request_id(request)})
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def invalid_scenario_handler(request: Request, exc: InvalidScenarioError) -> JSONResponse:
    logging.info(f"Invalid scenario: {exc}", extra={"request_id": _request_id(request)})
    return JSONResponse(status_code=422, content={"detail": str(exc)})


async def provider_error_handler(request: Request, exc: AggregateProviderError) -> JSONResponse:
    provider_failures_counter.inc()
    logging.error(f"Aggregate provider error: {exc}", extra={"request_id": _request_id(request)})
    return JSONResponse(status_code=503, content={"detail": "Aggregate provider unavailable"})


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Budget Analytics",
        description="Trends, forecasts, classification, what-if scenarios and financial health scoring",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(ContractViolationError, contract_violation_handler)
    app.add_exception_handler(InvalidScenarioError, invalid_scenario_handler)
    app.add_exception_handler(AggregateProviderError, provider_error_handler)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(analytics.router, prefix="/v1", tags=["analytics"])
    app.include_router(classification.router, prefix="/v1", tags=["classification"])
    app.include_router(simulations.router, prefix="/v1/simulations", tags=["simulations"])

    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn"""
    import uvicorn

    uvicorn.run("budget_analytics.api.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
