"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# HTTP metrics
http_requests = Counter(
    'http_requests_total',
    'HTTP requests handled',
    ['method', 'status']
)

http_request_latency = Histogram(
    'http_request_latency_seconds',
    'HTTP request latency',
    ['method'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

# Catalog write metrics
catalog_writes = Counter(
    'catalog_writes_total',
    'Catalog write operations',
    ['entity', 'operation']  # track/event/feedback/recommendation, create/update/delete
)

cascade_deleted_rows = Counter(
    'catalog_cascade_deleted_rows_total',
    'Child rows removed by cascading deletes',
    ['entity']
)

# Seat ledger metrics
seat_adjustments = Counter(
    'seat_adjustments_total',
    'Seat counter adjustments',
    ['direction']  # increment, decrement
)

# Image store metrics
image_operations = Counter(
    'image_store_operations_total',
    'Image store operations',
    ['backend', 'operation', 'result']  # store/resolve/discard, ok/empty/rejected
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_write(entity: str, operation: str):
    catalog_writes.labels(entity=entity, operation=operation).inc()


def record_cascade(entity: str, count: int):
    if count > 0:
        cascade_deleted_rows.labels(entity=entity).inc(count)


def record_seat_adjustment(direction: str):
    """Direction: increment, decrement"""
    seat_adjustments.labels(direction=direction).inc()


def record_image_operation(backend: str, operation: str, result: str):
    image_operations.labels(backend=backend, operation=operation, result=result).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()


def record_request(method: str, status_code: int, duration_seconds: float):
    http_requests.labels(method=method, status=str(status_code)).inc()
    http_request_latency.labels(method=method).observe(duration_seconds)
