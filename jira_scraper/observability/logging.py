"""Structured logging with correlation ID propagation.

Configures structlog for the scraper:
- Automatic correlation ID injection into all log entries
- Context binding (e.g. the project being scraped) via contextvars
- JSON or console output

Usage:
    import structlog

    from jira_scraper.observability.logging import bind_context, configure_logging

    # Configure at application startup
    configure_logging(level="INFO")

    bind_context(source_key="KAFKA")
    structlog.get_logger().info("page_fetched", count=50)

    # Output includes correlation_id automatically:
    # {"event": "page_fetched", "source_key": "KAFKA", "count": 50,
    #  "correlation_id": "abc-123", ...}
"""

import logging
import sys
from typing import Any

import structlog
from structlog.typing import EventDict, WrappedLogger

from jira_scraper.observability.context import get_correlation_id


def add_correlation_id_processor(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that adds correlation_id to log entries.

    If no correlation ID is set, uses "none".
    """
    corr_id = get_correlation_id()
    event_dict["correlation_id"] = corr_id if corr_id else "none"
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output JSON. If False, use console format.
        add_timestamp: If True, add ISO timestamp to each log entry.

    Example:
        # Long unattended runs (JSON for log aggregation)
        configure_logging(level="INFO", json_output=True)

        # Interactive use
        configure_logging(level="DEBUG", json_output=False)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        add_correlation_id_processor,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if add_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def bind_context(**context: Any) -> None:
    """Bind context to all subsequent log entries in the current context.

    Example:
        bind_context(source_key="KAFKA")
        logger.info("page_fetched")  # Includes source_key
    """
    structlog.contextvars.bind_contextvars(**context)


def unbind_context(*keys: str) -> None:
    """Remove previously bound keys from the logging context."""
    structlog.contextvars.unbind_contextvars(*keys)

