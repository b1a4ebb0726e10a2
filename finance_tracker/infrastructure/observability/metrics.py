"""Prometheus metrics for sync runs, summary generation and notification delivery"""

from prometheus_client import Counter, Histogram

# Pipeline metrics
pipeline_run_counter = Counter(
    "finance_tracker_runs_total",
    "Total sync pipeline runs",
    ["outcome"],  # no_change | notified | summarized | cooldown | failed
)

# Bridge metrics
bridge_fetch_failures_counter = Counter(
    "bridge_fetch_failures_total",
    "Failed bridge account fetches",
)

# Summary metrics
summary_latency_histogram = Histogram(
    "summary_request_latency_seconds",
    "Text-generation request latency per attempt",
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 360.0],
)

summary_attempt_failures_counter = Counter(
    "summary_attempt_failures_total",
    "Failed text-generation attempts",
    ["reason"],  # transport | status | parse
)

# Notification metrics
notification_counter = Counter(
    "notifications_total",
    "Notification dispatch results by channel",
    ["channel", "status"],  # status: sent | skipped | failed
)

stale_account_warning_counter = Counter(
    "stale_account_warnings_total",
    "Out-of-sync account warnings raised",
)


def record_channel_result(channel: str, status: str) -> None:
    notification_counter.labels(channel=channel, status=status).inc()


def record_run(outcome: str) -> None:
    pipeline_run_counter.labels(outcome=outcome).inc()
