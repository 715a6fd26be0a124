"""Prometheus metrics definitions for the Jira scraper.

Defines counters and histograms for monitoring:
- Record throughput (written / skipped)
- Page fetch outcomes
- HTTP request attempts, retries and latency
- Checkpoint persistence and chunk rotation

Usage:
    from jira_scraper.observability.metrics import (
        RECORDS_PROCESSED,
        HTTP_REQUEST_DURATION,
    )

    # Increment counter
    RECORDS_PROCESSED.labels(project="KAFKA", status="written").inc()

    # Track histogram
    with HTTP_REQUEST_DURATION.labels(endpoint="search").time():
        await session.get(url)

Metrics can be dumped after a run with ``jira-scraper run --metrics-file``.
"""

from pathlib import Path

from prometheus_client import (
    Counter,
    Histogram,
    CollectorRegistry,
    generate_latest,
)

# Custom registry to avoid conflicts with default registry
REGISTRY = CollectorRegistry(auto_describe=True)

# =============================================================================
# COUNTERS - Monotonically increasing values
# =============================================================================

RECORDS_PROCESSED = Counter(
    name="jira_scraper_records_total",
    documentation="Issues handled by the scraper",
    labelnames=["project", "status"],  # written, skipped
    registry=REGISTRY,
)

PAGES_FETCHED = Counter(
    name="jira_scraper_pages_total",
    documentation="Search pages requested",
    labelnames=["project", "status"],  # success, skipped, aborted
    registry=REGISTRY,
)

HTTP_REQUESTS_TOTAL = Counter(
    name="jira_scraper_http_requests_total",
    documentation="Physical HTTP attempts against the Jira API",
    labelnames=["endpoint", "status"],  # search/issue, status code or "error"
    registry=REGISTRY,
)

HTTP_RETRIES_TOTAL = Counter(
    name="jira_scraper_http_retries_total",
    documentation="Backoff waits taken after retryable failures",
    labelnames=["endpoint"],
    registry=REGISTRY,
)

CHECKPOINT_OPERATIONS = Counter(
    name="jira_scraper_checkpoint_operations_total",
    documentation="Checkpoint store operations",
    labelnames=["operation", "status"],  # load/save/delete, success/failed
    registry=REGISTRY,
)

CHUNK_ROTATIONS = Counter(
    name="jira_scraper_chunk_rotations_total",
    documentation="Output chunk files started because of the size limit",
    registry=REGISTRY,
)

# =============================================================================
# HISTOGRAMS - Distribution of values
# =============================================================================

HTTP_REQUEST_DURATION = Histogram(
    name="jira_scraper_http_request_duration_seconds",
    documentation="Jira API request duration in seconds",
    labelnames=["endpoint"],
    buckets=(0.1, 0.25, 0.5, 1, 2, 5, 10, 30, 60, float("inf")),
    registry=REGISTRY,
)

# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def get_metrics_text() -> bytes:
    """Generate Prometheus metrics in text format.

    Returns:
        UTF-8 encoded metrics in Prometheus exposition format.
    """
    return generate_latest(REGISTRY)


def write_metrics_file(path: Path) -> None:
    """Write the current metrics snapshot to a file.

    Args:
        path: Destination file, parent directories are created.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(get_metrics_text())
