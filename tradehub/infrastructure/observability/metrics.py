"""Prometheus metrics for transfers, balance updates and webhook performance"""

from prometheus_client import Counter, Histogram

# Transfer metrics
transfer_counter = Counter(
    "tradehub_transfer_total",
    "Money operations processed",
    ["operation", "outcome"],  # transfer|withdrawal|topup, completed|rejected|failed
)

transfer_amount_bucket_counter = Counter(
    "tradehub_transfer_amount_bucket",
    "Transfer amounts by bucket",
    ["bucket"],  # <=€100, €100-€1000, €1000-€10000, €10000+
)

partial_transfer_counter = Counter(
    "tradehub_partial_transfer_total",
    "Transfers where the sender was debited but the recipient leg failed",
)

balance_rejection_counter = Counter(
    "tradehub_balance_update_rejected_total",
    "Balance updates rejected because the result would be negative",
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Events webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "webhook_failures_total",
    "Failed webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_transfer(operation: str, outcome: str, amount_cents: int = 0) -> None:
    """Record a money operation and, when completed, bucket its amount"""
    transfer_counter.labels(operation=operation, outcome=outcome).inc()
    if outcome != "completed":
        return

    if amount_cents <= 10_000:
        bucket = "<=€100"
    elif amount_cents <= 100_000:
        bucket = "€100-€1000"
    elif amount_cents <= 1_000_000:
        bucket = "€1000-€10000"
    else:
        bucket = "€10000+"

    transfer_amount_bucket_counter.labels(bucket=bucket).inc()
