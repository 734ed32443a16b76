"""Prometheus metrics for the Financing Gateway service.

Metrics are organized into two categories:

Business Metrics (for Product/Finance):
- financing_plans_created_total: Plans created by frequency
- financing_plan_transitions_total: Lifecycle transitions by from/to status
- financing_financed_cents_total: Amount financed across created plans
- financing_eligibility_checks_total: Eligibility evaluations by outcome

Technical Metrics (for Engineering/SRE):
- financing_webhook_events_total: Inbound processor events by type/outcome
- financing_gateway_latency_seconds: Billing gateway call latency
- financing_gateway_failures_total: Billing gateway failures
- financing_gateway_retry_total: Billing gateway retries
- financing_cancellations_pending: Plans owing an external cancellation
- financing_http_requests_total: HTTP requests by endpoint/status
"""

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import Counter, Histogram, Gauge, REGISTRY, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST


# =============================================================================
# Business Metrics (Product/Finance dashboards)
# =============================================================================

plans_created_total = Counter(
    "financing_plans_created_total",
    "Total number of installment plans created",
    ["frequency"],  # weekly, biweekly, monthly
)

plan_transitions_total = Counter(
    "financing_plan_transitions_total",
    "Installment plan lifecycle transitions",
    ["from_status", "to_status"],
)

financed_cents_total = Counter(
    "financing_financed_cents_total",
    "Total amount financed in cents across created plans",
)

eligibility_checks_total = Counter(
    "financing_eligibility_checks_total",
    "Eligibility evaluations by outcome",
    ["outcome"],  # eligible, ineligible
)


# =============================================================================
# Technical Metrics (Engineering/SRE dashboards)
# =============================================================================

webhook_events_total = Counter(
    "financing_webhook_events_total",
    "Inbound billing processor events",
    ["event_type", "outcome"],  # processed, duplicate, ignored, unknown_reference, failed
)

gateway_latency = Histogram(
    "financing_gateway_latency_seconds",
    "Billing gateway call latency in seconds",
    ["operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

gateway_failures = Counter(
    "financing_gateway_failures_total",
    "Total number of billing gateway failures",
    ["operation", "error_type"],  # timeout, transient, rejected
)

gateway_retries = Counter(
    "financing_gateway_retry_total",
    "Total number of billing gateway retries",
    ["operation"],
)

cancellations_pending = Gauge(
    "financing_cancellations_pending",
    "Plans whose external billing cancellation is still owed",
)

http_requests_total = Counter(
    "financing_http_requests_total",
    "Total HTTP requests by endpoint and status",
    ["method", "endpoint", "status"],
)

http_request_latency = Histogram(
    "financing_http_request_latency_seconds",
    "HTTP request latency by endpoint",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_plan_created(frequency: str, financed_cents: int) -> None:
    """Record a newly created plan."""
    plans_created_total.labels(frequency=frequency).inc()
    financed_cents_total.inc(financed_cents)


def record_transition(from_status: str, to_status: str) -> None:
    """Record a lifecycle transition."""
    plan_transitions_total.labels(from_status=from_status, to_status=to_status).inc()


def record_eligibility(eligible: bool) -> None:
    """Record an eligibility evaluation."""
    outcome = "eligible" if eligible else "ineligible"
    eligibility_checks_total.labels(outcome=outcome).inc()


def record_webhook_event(event_type: str, outcome: str) -> None:
    """Record an inbound webhook event and how it was handled."""
    webhook_events_total.labels(event_type=event_type, outcome=outcome).inc()


@contextmanager
def track_gateway_latency(operation: str) -> Generator[None, None, None]:
    """Context manager to track billing gateway latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        gateway_latency.labels(operation=operation).observe(duration)


def record_gateway_failure(operation: str, error_type: str) -> None:
    """Record a billing gateway failure."""
    gateway_failures.labels(operation=operation, error_type=error_type).inc()


def record_gateway_retry(operation: str) -> None:
    """Record a billing gateway retry attempt."""
    gateway_retries.labels(operation=operation).inc()


def set_cancellations_pending(count: int) -> None:
    """Publish the number of plans owing an external cancellation."""
    cancellations_pending.set(count)


def record_http_request(method: str, endpoint: str, status: int, duration: float) -> None:
    """Record an HTTP request."""
    http_requests_total.labels(method=method, endpoint=endpoint, status=str(status)).inc()
    http_request_latency.labels(method=method, endpoint=endpoint).observe(duration)


def get_metrics() -> bytes:
    """Get current metrics in Prometheus format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST
