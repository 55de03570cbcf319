"""Classification endpoints - suggestions, learning, stats and transaction import"""

import time
import logging
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session
from typing import List

from budget_analytics.api.v1.schemas import (
    ClassifyRequest,
    ImportRequest,
    ImportResponse,
    ImportedTransaction,
    LearnRequest,
    LearnResponse,
    StatsResponse,
    SuggestionSchema,
)
from budget_analytics.api.dependencies import get_aggregate_client, get_pattern_store, get_request_id
from budget_analytics.config import settings
from budget_analytics.domain.aggregates import category_series_map
from budget_analytics.domain.anomaly import scan_transactions
from budget_analytics.domain.classifier import Classifier
from budget_analytics.domain.exceptions import AggregateProviderError, ContractViolationError
from budget_analytics.domain.models import RawTransaction
from budget_analytics.infrastructure.clients.aggregates import AggregateClient
from budget_analytics.infrastructure.database.repositories import SqlPatternRepository
from budget_analytics.infrastructure.database.session import get_db
from budget_analytics.infrastructure.observability.logging import log_anomaly, log_classification
from budget_analytics.infrastructure.observability.metrics import (
    learn_counter,
    provider_failures_counter,
    record_anomaly,
    record_classification,
)
from budget_analytics.utils.date_utils import add_months

router = APIRouter()


@router.post("/classification/classify", response_model=List[SuggestionSchema])
async def classify_transaction(
    request_body: ClassifyRequest,
    request: Request,
    store: SqlPatternRepository = Depends(get_pattern_store),
    client: AggregateClient = Depends(get_aggregate_client),
):
    """Up to three category suggestions, best first"""
    categories = await client.get_categories(request_body.user_id)
    classifier = Classifier(store, categories, request_body.user_id)
    suggestions = classifier.classify(request_body.description, request_body.amount_cents, request_body.category)

    top = suggestions[0] if suggestions else None
    if top is not None:
        record_classification(top.category_type, top.confidence)
    log_classification(
        get_request_id(request),
        request_body.user_id,
        top.category_name if top else None,
        top.confidence if top else 0,
        len(suggestions),
    )
    return [SuggestionSchema(**s.__dict__) for s in suggestions]


@router.post("/classification/learn", response_model=LearnResponse)
async def learn_classification(
    request_body: LearnRequest,
    db: Session = Depends(get_db),
    client: AggregateClient = Depends(get_aggregate_client),
):
    """Record that the user picked or confirmed a category for a description"""
    categories = await client.get_categories(request_body.user_id)
    classifier = Classifier(SqlPatternRepository(db), categories, request_body.user_id)

    try:
        pattern = classifier.learn(
            request_body.description,
            request_body.amount_cents,
            request_body.category_id,
            source=request_body.source,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    learn_counter.labels(source=request_body.source).inc()
    return LearnResponse(success=True, signature=pattern.signature, hit_count=pattern.hit_count)


@router.get("/classification/stats", response_model=StatsResponse)
async def get_classification_stats(
    user_id: str = Query(..., min_length=1),
    store: SqlPatternRepository = Depends(get_pattern_store),
    client: AggregateClient = Depends(get_aggregate_client),
):
    """How much the classifier has learned for a user"""
    categories = await client.get_categories(user_id)
    stats = Classifier(store, categories, user_id).stats()
    return StatsResponse(
        total_patterns=stats.total_patterns,
        high_confidence_count=stats.high_confidence_count,
        top_categories=[{"category_name": name, "count": count} for name, count in stats.top_categories],
    )


@router.post("/transactions/import", response_model=ImportResponse)
async def import_transactions(
    request_body: ImportRequest,
    request: Request,
    store: SqlPatternRepository = Depends(get_pattern_store),
    client: AggregateClient = Depends(get_aggregate_client),
):
    """
    Classify a batch of imported transactions and flag unusual spending.

    Flow:
    1. Fetch the category directory and the months preceding the import
    2. Classify each transaction (hint, learned patterns, keyword rules)
    3. Check outgoing amounts against their category's monthly history
    4. Return suggestions and anomaly verdicts per transaction
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        categories = await client.get_categories(request_body.user_id)
        earliest = min(t.date for t in request_body.transactions)
        aggregates = await client.get_monthly_aggregates(
            request_body.user_id,
            settings.history_window_months,
            until=add_months(date(earliest.year, earliest.month, 1), -1),
        )
    except AggregateProviderError as e:
        provider_failures_counter.inc()
        logging.error(f"Aggregate provider error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Aggregate provider unavailable")

    try:
        classifier = Classifier(store, categories, request_body.user_id)
        classified = []
        for t in request_body.transactions:
            transaction = RawTransaction(
                description=t.description,
                amount_cents=t.amount_cents,
                date=t.date,
                category_hint=t.category_hint,
            )
            classified.append((transaction, classifier.classify(t.description, t.amount_cents, t.category_hint)))

        histories = category_series_map(aggregates, "expense")
        histories.update(category_series_map(aggregates, "investment"))
        insights = scan_transactions(
            classified,
            histories,
            threshold=settings.anomaly_threshold,
            min_samples=settings.anomaly_min_samples,
        )

    except ContractViolationError as e:
        logging.warning(f"Rejected import: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    response_items = []
    anomaly_count = 0
    for insight in insights:
        if insight.suggestions:
            top = insight.suggestions[0]
            record_classification(top.category_type, top.confidence)
        if insight.anomaly is not None:
            record_anomaly(insight.anomaly.is_anomalous)
            if insight.anomaly.is_anomalous:
                anomaly_count += 1
                log_anomaly(
                    request_id,
                    request_body.user_id,
                    insight.suggestions[0].category_name,
                    insight.transaction.amount_cents,
                    insight.anomaly.average,
                )
        response_items.append(
            ImportedTransaction(
                description=insight.transaction.description,
                amount_cents=insight.transaction.amount_cents,
                date=insight.transaction.date,
                suggestions=[SuggestionSchema(**s.__dict__) for s in insight.suggestions],
                anomaly=insight.anomaly.__dict__ if insight.anomaly else None,
            )
        )

    duration_ms = (time.time() - start_time) * 1000
    logging.info(
        "Import completed",
        extra={
            "request_id": request_id,
            "user_id": request_body.user_id,
            "step": "import_complete",
            "transaction_count": len(response_items),
            "anomaly_count": anomaly_count,
            "duration_ms": duration_ms,
        },
    )

    return ImportResponse(user_id=request_body.user_id, transactions=response_items, anomaly_count=anomaly_count)
