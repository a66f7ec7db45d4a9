"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Registration metrics
registration_attempts = Counter(
    'registration_attempts_total',
    'Total registration attempts',
    ['outcome']  # created, event_full, already_registered, busy, ...
)

registration_latency = Histogram(
    'registration_latency_seconds',
    'Time spent inside the registration unit of work',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0]
)

cancellations = Counter(
    'registration_cancellations_total',
    'Total cancellation attempts',
    ['outcome']  # cancelled, not_registered, busy, ...
)

# Store metrics
store_faults = Counter(
    'store_faults_total',
    'Store errors surfaced to callers',
    ['kind']  # busy, store_unavailable
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set/invalidate, hit/miss/error/ok
)


def metrics_endpoint() -> Response:
    """Prometheus metrics in the text exposition format."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_registration_attempt(outcome: str):
    registration_attempts.labels(outcome=outcome).inc()


def record_cancellation(outcome: str):
    cancellations.labels(outcome=outcome).inc()


def record_store_fault(kind: str):
    store_faults.labels(kind=kind).inc()


def record_cache_operation(operation: str, result: str):
    cache_operations.labels(operation=operation, result=result).inc()
