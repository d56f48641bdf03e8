"""
Prometheus metrics for runner distribution syncs.

Each invocation is a short-lived batch job, so metrics live in a dedicated
registry that is pushed to a Pushgateway at the end of the run instead of
being scraped.

Provides instrumentation for:
- Sync runs by outcome
- Bytes replicated into the cache
- Sync duration
- Errors by category
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, push_to_gateway

from core.logging.utilities import get_logger

logger = get_logger(__name__)

JOB_NAME = "runner_binaries_syncer"

registry = CollectorRegistry()

# Sync outcomes
sync_runs_total = Counter(
    "runner_syncer_runs_total",
    "Total number of sync invocations by outcome",
    ["target", "outcome"],  # outcome: up_to_date, synced, failed
    registry=registry,
)

sync_errors_total = Counter(
    "runner_syncer_errors_total",
    "Total number of failed sync invocations by error category",
    ["target", "error_category"],
    registry=registry,
)

# Transfer metrics
bytes_replicated_total = Counter(
    "runner_syncer_bytes_replicated_total",
    "Total bytes streamed from GitHub into the cache store",
    ["target"],
    registry=registry,
)

sync_duration_seconds = Histogram(
    "runner_syncer_duration_seconds",
    "Wall-clock duration of a sync invocation",
    ["target"],
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0),
    registry=registry,
)

last_success_timestamp = Gauge(
    "runner_syncer_last_success_timestamp_seconds",
    "Unix time of the last successful sync invocation",
    ["target"],
    registry=registry,
)


def record_sync_outcome(target: str, outcome: str, duration_seconds: float) -> None:
    """
    Record a finished sync invocation.

    Args:
        target: Runner target (e.g. linux-x64)
        outcome: up_to_date, synced or failed
        duration_seconds: Invocation duration
    """
    sync_runs_total.labels(target=target, outcome=outcome).inc()
    sync_duration_seconds.labels(target=target).observe(duration_seconds)
    if outcome != "failed":
        last_success_timestamp.labels(target=target).set_to_current_time()


def record_sync_error(target: str, error_category: str) -> None:
    """
    Record a failed sync invocation by error category.

    Args:
        target: Runner target
        error_category: ErrorCategory value (transient, permanent, ...)
    """
    sync_errors_total.labels(target=target, error_category=error_category).inc()


def record_bytes_replicated(target: str, num_bytes: int) -> None:
    """Record bytes copied into the cache store."""
    bytes_replicated_total.labels(target=target).inc(num_bytes)


def push_metrics(gateway: Optional[str], target: str) -> bool:
    """
    Push the registry to a Pushgateway.

    Push failures are logged and swallowed; metrics never fail a sync.

    Args:
        gateway: Pushgateway address (None = skip)
        target: Runner target, used as grouping key

    Returns:
        True if metrics were pushed
    """
    if not gateway:
        return False
    try:
        push_to_gateway(
            gateway,
            job=JOB_NAME,
            registry=registry,
            grouping_key={"target": target},
        )
        return True
    except OSError as e:
        logger.warning(f"Failed to push metrics to {gateway}: {e}")
        return False
