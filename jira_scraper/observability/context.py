"""Correlation ID context management for run tracing.

Provides ContextVar-based storage for a correlation ID that propagates
automatically across async boundaries, so every log line of one CLI
invocation can be grouped together.

Usage:
    from jira_scraper.observability.context import (
        set_correlation_id,
        get_correlation_id,
    )

    # At the CLI command boundary
    corr_id = set_correlation_id()  # Generates UUID if not provided
"""

import uuid
from contextvars import ContextVar
from typing import Optional

_correlation_id_var: ContextVar[Optional[str]] = ContextVar(
    "correlation_id", default=None
)


def set_correlation_id(corr_id: Optional[str] = None) -> str:
    """Set the correlation ID for the current context.

    Args:
        corr_id: Optional correlation ID. If None, generates a UUID4.

    Returns:
        The correlation ID that was set.
    """
    if corr_id is None:
        corr_id = str(uuid.uuid4())

    _correlation_id_var.set(corr_id)
    return corr_id


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID, or None if not set."""
    return _correlation_id_var.get()


def clear_correlation_id() -> None:
    """Reset the correlation ID to None."""
    _correlation_id_var.set(None)
