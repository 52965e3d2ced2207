"""Prometheus metrics for monitoring ROI report outcomes and invoicing API health"""

from prometheus_client import Counter, Histogram

# Report metrics
roi_report_counter = Counter(
    "roi_reports_total",
    "Total ROI report requests by outcome",
    ["outcome"],  # success | ambiguous | not_found | auth_failure | upstream_error
)

# Invoicing platform metrics
invoicing_latency_histogram = Histogram(
    "invoicing_api_latency_seconds",
    "Invoicing platform response time",
    ["resource"],  # clients | invoices | payments | products
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

invoicing_failure_counter = Counter(
    "invoicing_api_failures_total",
    "Failed invoicing platform calls",
    ["reason"],  # auth | http | timeout | transport | payload
)

invoicing_pages_counter = Counter(
    "invoicing_pages_fetched_total",
    "Pages fetched from the invoicing platform",
    ["resource"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_roi_outcome(outcome: str) -> None:
    """Record one ROI request outcome"""
    roi_report_counter.labels(outcome=outcome).inc()
