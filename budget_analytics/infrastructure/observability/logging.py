"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from budget_analytics.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_classification(
    request_id: str,
    user_id: str,
    top_category: Optional[str],
    confidence: float,
    suggestion_count: int,
) -> None:
    """Log the outcome of a classification request"""
    logging.info(
        "Classification completed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "classify",
            "top_category": top_category,
            "confidence": confidence,
            "suggestion_count": suggestion_count,
        },
    )


def log_anomaly(request_id: str, user_id: str, category: str, amount_cents: int, average: float) -> None:
    """Log a transaction flagged as anomalous"""
    logging.warning(
        "Anomalous transaction detected",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "anomaly",
            "category": category,
            "amount_cents": amount_cents,
            "average_cents": round(average),
        },
    )
