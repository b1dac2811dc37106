"""Prometheus metrics helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

HTTP_REQUESTS_TOTAL = Counter(
    "keyring_http_requests_total",
    "Total number of HTTP requests.",
    ["method", "route", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "keyring_http_request_duration_seconds",
    "HTTP request duration in seconds.",
    ["method", "route", "status"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

API_KEY_AUTH_TOTAL = Counter(
    "keyring_api_key_auth_total",
    "API key validation attempts by outcome.",
    ["outcome"],
)

SECRET_COLLISIONS_TOTAL = Counter(
    "keyring_secret_collisions_total",
    "Generated secrets rejected by the unique index.",
)


def observe_http_request(
    *,
    method: str,
    route: str,
    status_code: int,
    duration_ms: float,
) -> None:
    status = str(status_code)
    HTTP_REQUESTS_TOTAL.labels(method=method, route=route, status=status).inc()
    HTTP_REQUEST_DURATION_SECONDS.labels(
        method=method, route=route, status=status
    ).observe(duration_ms / 1000.0)


def observe_auth(outcome: str) -> None:
    """Record a validation outcome (``ok``, ``missing``, ``unknown``, ``expired``, ``disabled``)."""
    API_KEY_AUTH_TOTAL.labels(outcome=outcome).inc()
