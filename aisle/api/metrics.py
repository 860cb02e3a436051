"""
Prometheus metrics for the gateway.

HTTP traffic, feature resolutions (which path answered and why) and provider
call latency.
"""

from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

REQUEST_COUNT = Counter(
    "aisle_requests_total",
    "Total HTTP requests",
    ["endpoint", "method", "status"],
)

REQUEST_DURATION = Histogram(
    "aisle_request_duration_ms",
    "Request latency in milliseconds",
    ["endpoint"],
    buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000, 90000),
)

FEATURE_RESOLUTIONS = Counter(
    "aisle_feature_resolutions_total",
    "Feature results by answering path",
    ["feature", "source", "reason"],  # source: provider|fallback
)

PROVIDER_DURATION = Histogram(
    "aisle_provider_duration_seconds",
    "Provider call latency in seconds",
    ["provider"],
    buckets=(0.25, 0.5, 1, 2.5, 5, 10, 15, 30, 60, 90),
)


def record_request(endpoint: str, method: str, status: int) -> None:
    """Increment the request counter."""
    REQUEST_COUNT.labels(endpoint=endpoint, method=method, status=str(status)).inc()


def observe_duration(endpoint: str, duration_ms: float) -> None:
    """Record request duration."""
    REQUEST_DURATION.labels(endpoint=endpoint).observe(duration_ms)


def record_resolution(feature: str, source: str, reason: str = "") -> None:
    """Count one feature result.

    ``reason`` is the failure kind for fallback results and empty otherwise.
    """
    FEATURE_RESOLUTIONS.labels(feature=feature, source=source, reason=reason).inc()


def provider_observer(provider: str):
    """Return a duration callback for ``timed_operation``."""
    histogram = PROVIDER_DURATION.labels(provider=provider)
    return histogram.observe


def metrics_response() -> tuple[bytes, str]:
    """Return (body, content_type) for the /metrics endpoint."""
    return generate_latest(), CONTENT_TYPE_LATEST
