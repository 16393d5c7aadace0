"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Purchase metrics
purchase_attempts = Counter(
    'purchase_attempts_total',
    'Total purchase attempts',
    ['status']  # success, insufficient, not_found, invalid, error
)

purchase_latency = Histogram(
    'purchase_latency_seconds',
    'Purchase latency from validation to commit or rollback',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

lock_wait = Histogram(
    'ticket_lock_wait_seconds',
    'Time spent waiting for the per-ticket exclusive lock',
    buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0]
)

# Inventory metrics
tickets_created = Counter(
    'tickets_created_total',
    'Tickets created'
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # generation/get/set/invalidate, hit/miss/ok/error
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_purchase_attempt(status: str):
    """Record purchase attempt. Status: success, insufficient, not_found, invalid, error"""
    purchase_attempts.labels(status=status).inc()


def record_cache_operation(operation: str, result: str):
    cache_operations.labels(operation=operation, result=result).inc()
