"""Anomaly detection - flag spending far above a category's historical average"""

from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from budget_analytics.domain.exceptions import ContractViolationError
from budget_analytics.domain.models import (
    AnomalyResult,
    ClassificationSuggestion,
    MonthlySeries,
    RawTransaction,
    TransactionInsight,
)

DEFAULT_THRESHOLD = 2.0
DEFAULT_MIN_SAMPLES = 3


def detect_anomaly(
    history: Optional[MonthlySeries],
    new_amount: float,
    threshold: float = DEFAULT_THRESHOLD,
    min_samples: int = DEFAULT_MIN_SAMPLES,
) -> AnomalyResult:
    """
    Compare an amount with its category's history.

    The check is one-sided: only amounts above average * threshold are
    anomalous; unusually low spending is never flagged. Too little history
    or a zero average yields a plain "not anomalous" verdict.

    Raises:
        ContractViolationError: threshold <= 0 or min_samples < 1
    """
    if threshold <= 0:
        raise ContractViolationError(f"Anomaly threshold must be positive, got {threshold}")
    if min_samples < 1:
        raise ContractViolationError(f"min_samples must be at least 1, got {min_samples}")

    sample_count = len(history) if history is not None else 0
    if history is None or sample_count < min_samples:
        return AnomalyResult(is_anomalous=False, average=0.0, sample_count=sample_count, deviation_ratio=0.0)

    average = float(history.mean())
    if average <= 0:
        return AnomalyResult(is_anomalous=False, average=0.0, sample_count=sample_count, deviation_ratio=0.0)

    return AnomalyResult(
        is_anomalous=new_amount > average * threshold,
        average=average,
        sample_count=sample_count,
        deviation_ratio=new_amount / average,
    )


def scan_transactions(
    classified: Iterable[Tuple[RawTransaction, Sequence[ClassificationSuggestion]]],
    histories: Mapping[str, MonthlySeries],
    threshold: float = DEFAULT_THRESHOLD,
    min_samples: int = DEFAULT_MIN_SAMPLES,
) -> List[TransactionInsight]:
    """
    Attach anomaly verdicts to a batch of classified transactions.

    Only outgoing money whose best suggestion is an expense or investment
    category is checked, against that category's monthly history.
    """
    insights = []
    for transaction, suggestions in classified:
        anomaly = None
        top = suggestions[0] if suggestions else None
        if top is not None and top.category_type in ("expense", "investment") and transaction.amount_cents < 0:
            anomaly = detect_anomaly(
                histories.get(top.category_name),
                abs(transaction.amount_cents),
                threshold=threshold,
                min_samples=min_samples,
            )
        insights.append(TransactionInsight(transaction=transaction, suggestions=list(suggestions), anomaly=anomaly))
    return insights
