"""Prometheus metric helpers."""
from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "portal_requests_total",
    "HTTP requests processed by the API",
    ("method", "path", "status"),
)

REQUEST_LATENCY = Histogram(
    "portal_request_latency_seconds",
    "Latency of HTTP requests processed by the API",
    ("method", "path"),
    buckets=(
        0.005,
        0.01,
        0.025,
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.5,
        5.0,
    ),
)

ASSOCIATION_CHANGES = Counter(
    "portal_association_operations_total",
    "Customer/product association operations by outcome",
    ("operation", "outcome"),
)


def record_request(method: str, path: str, status_code: int, duration: float) -> None:
    """Record counters and histograms for a processed HTTP request."""

    REQUEST_COUNT.labels(method, path, str(status_code)).inc()
    REQUEST_LATENCY.labels(method, path).observe(duration)


def record_association(operation: str, outcome: str) -> None:
    """Increment the association operation counter."""

    ASSOCIATION_CHANGES.labels(operation, outcome).inc()
