"""Prometheus metrics for monitoring pipeline outcomes, step latency, and published volume"""

from prometheus_client import Counter, Histogram

# Pipeline metrics
pipeline_run_counter = Counter(
    "token_pipeline_runs_total",
    "Total OAuth pipeline runs",
    ["outcome"],  # success | error
)

step_failure_counter = Counter(
    "token_pipeline_step_failures_total",
    "Pipeline runs aborted, by failing step",
    ["step"],  # exchange | fetch | transform | publish
)

step_latency_histogram = Histogram(
    "token_pipeline_step_seconds",
    "Latency of each pipeline step",
    ["step"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Publishing metrics
published_records_counter = Counter(
    "token_published_transactions_total",
    "Transactions handed to the outbound stream",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_run(success: bool, failed_step: str | None = None) -> None:
    """Record the outcome of one pipeline run"""
    pipeline_run_counter.labels(outcome="success" if success else "error").inc()
    if not success and failed_step:
        step_failure_counter.labels(step=failed_step).inc()
