"""Prometheus metrics for classification quality, anomaly rates and scenario usage"""

from prometheus_client import Counter, Histogram

# Classification metrics
classification_counter = Counter(
    "budget_classification_total",
    "Transactions classified",
    ["category_type"],  # income | expense | investment
)

classification_confidence_histogram = Histogram(
    "budget_classification_confidence",
    "Confidence of the top classification suggestion",
    buckets=[10, 25, 50, 60, 70, 80, 90, 100],
)

learn_counter = Counter(
    "budget_learn_total",
    "Classification confirmations recorded",
    ["source"],  # manual | confirmed
)

# Anomaly metrics
anomaly_counter = Counter(
    "budget_anomaly_checks_total",
    "Anomaly checks performed",
    ["outcome"],  # flagged | normal
)

# Simulation and scoring metrics
simulation_counter = Counter(
    "budget_simulation_total",
    "What-if simulations run",
    ["kind"],
)

health_grade_counter = Counter(
    "budget_health_grade_total",
    "Financial health grades issued",
    ["grade"],
)

# Aggregate provider metrics
provider_failures_counter = Counter(
    "aggregate_provider_failures_total",
    "Failed aggregate provider calls",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_classification(category_type: str, confidence: float) -> None:
    """Record the type and confidence of the top suggestion"""
    classification_counter.labels(category_type=category_type).inc()
    classification_confidence_histogram.observe(confidence)


def record_anomaly(is_anomalous: bool) -> None:
    anomaly_counter.labels(outcome="flagged" if is_anomalous else "normal").inc()
