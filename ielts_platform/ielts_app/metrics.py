"""Prometheus metrics helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

REQUEST_COUNT = Counter(
    "ielts_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "ielts_request_latency_seconds",
    "Latency of HTTP requests in seconds",
    ["endpoint"],
)
GENERATION_COUNT = Counter(
    "ielts_generation_total",
    "Passage/question generation calls by outcome",
    ["kind", "outcome"],
)
COMPLETION_LATENCY = Histogram(
    "ielts_completion_latency_seconds",
    "Latency of completion service calls in seconds",
)
ATTEMPTS_SCORED = Counter(
    "ielts_attempts_scored_total",
    "Reading attempts scored and persisted",
)


def record_request(method: str, endpoint: str, status: int, latency: float) -> None:
    REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
    REQUEST_LATENCY.labels(endpoint=endpoint).observe(latency)


def record_generation(kind: str, success: bool) -> None:
    GENERATION_COUNT.labels(kind=kind, outcome="success" if success else "failure").inc()


def latest_metrics() -> tuple[bytes, str]:
    data = generate_latest()
    return data, CONTENT_TYPE_LATEST
