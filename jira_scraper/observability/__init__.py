"""Observability module.

Provides:
- Correlation ID context management for run tracing
- Structured logging with context propagation
- Prometheus metrics for scrape throughput and API health

Usage:
    from jira_scraper.observability import (
        set_correlation_id,
        bind_context,
        RECORDS_PROCESSED,
    )

    corr_id = set_correlation_id()
    bind_context(source_key="KAFKA")

    RECORDS_PROCESSED.labels(project="KAFKA", status="written").inc()
"""

from jira_scraper.observability.context import (
    set_correlation_id,
    get_correlation_id,
    clear_correlation_id,
)
from jira_scraper.observability.logging import (
    configure_logging,
    add_correlation_id_processor,
    bind_context,
    unbind_context,
)
from jira_scraper.observability.metrics import (
    RECORDS_PROCESSED,
    PAGES_FETCHED,
    HTTP_REQUESTS_TOTAL,
    HTTP_RETRIES_TOTAL,
    CHECKPOINT_OPERATIONS,
    CHUNK_ROTATIONS,
    HTTP_REQUEST_DURATION,
    get_metrics_text,
    write_metrics_file,
)

__all__ = [
    # Context
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    # Logging
    "configure_logging",
    "add_correlation_id_processor",
    "bind_context",
    "unbind_context",
    # Metrics
    "RECORDS_PROCESSED",
    "PAGES_FETCHED",
    "HTTP_REQUESTS_TOTAL",
    "HTTP_RETRIES_TOTAL",
    "CHECKPOINT_OPERATIONS",
    "CHUNK_ROTATIONS",
    "HTTP_REQUEST_DURATION",
    "get_metrics_text",
    "write_metrics_file",
]
