"""
Prometheus metrics endpoint.

Exposes application metrics in Prometheus format for scraping.

Metrics exposed:
- stockledger_postings_total: Recorded movements by type and outcome
- stockledger_posting_retries_total: Posting attempts retried after a conflict
- stockledger_posting_duration_seconds: Time to record a movement
- stockledger_request_duration_seconds: HTTP request duration histogram
- stockledger_active_requests: Requests currently being processed
"""
import logging
import re
import time

from django.http import HttpResponse
from django.views import View
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

logger = logging.getLogger(__name__)


postings_total = Counter(
    "stockledger_postings_total",
    "Inventory movements by type and outcome (posted or error code)",
    ["transaction_type", "outcome"],
)

posting_retries_total = Counter(
    "stockledger_posting_retries_total",
    "Posting attempts retried after a concurrency conflict",
)

posting_duration = Histogram(
    "stockledger_posting_duration_seconds",
    "Time to record an inventory movement, retries included",
    ["transaction_type"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

request_duration = Histogram(
    "stockledger_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

active_requests = Gauge(
    "stockledger_active_requests",
    "Number of requests currently being processed",
)


def record_posting_outcome(transaction_type: str, outcome: str) -> None:
    postings_total.labels(transaction_type=transaction_type, outcome=outcome).inc()


def record_posting_retry() -> None:
    posting_retries_total.inc()


def observe_posting_duration(transaction_type: str, seconds: float) -> None:
    posting_duration.labels(transaction_type=transaction_type).observe(seconds)


def get_prometheus_response():
    """Generate Prometheus metrics response."""
    try:
        output = generate_latest()
        return HttpResponse(output, content_type=CONTENT_TYPE_LATEST)
    except Exception as e:
        logger.error(f"Error generating metrics: {e}")
        return HttpResponse(
            f"# Error generating metrics: {e}\n",
            content_type="text/plain",
            status=500,
        )


class MetricsView(View):
    """
    Prometheus metrics endpoint.

    Exposes metrics in Prometheus format at /_metrics.
    Should be protected in production (internal network only).
    """

    def get(self, request):
        return get_prometheus_response()


def _normalize_endpoint(path: str) -> str:
    # Strip IDs from common patterns for cardinality control
    endpoint = re.sub(r"/\d+/", "/{id}/", path)
    endpoint = re.sub(r"/[0-9a-f-]{36}/", "/{uuid}/", endpoint)
    return endpoint[:50]


def track_request_metrics(get_response):
    """
    Middleware to track request duration metrics.

    Add to MIDDLEWARE after SecurityMiddleware:
        "ops.metrics.track_request_metrics",
    """

    def middleware(request):
        start = time.time()
        active_requests.inc()
        status = 500
        try:
            response = get_response(request)
            status = response.status_code
            return response
        finally:
            active_requests.dec()
            request_duration.labels(
                method=request.method,
                endpoint=_normalize_endpoint(request.path),
                status=f"{status // 100}xx",
            ).observe(time.time() - start)

    return middleware
