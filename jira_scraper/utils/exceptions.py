"""Custom exceptions for the Jira scraping pipeline

This module defines the exception hierarchy used by the scraper:
- Base exception for all scraper errors
- Request errors split by retry category (retryable, exhausted, terminal)
- Per-record and per-source failures raised by the orchestrator

All exceptions inherit from ScraperError to allow catching every
scraper-related error in a single except block when needed.
"""

from typing import Any, Optional


class ScraperError(Exception):
    """Base exception for all scraper errors

    Use this to catch any error raised while scraping:
    ```python
    try:
        await scraper.scrape_source("KAFKA")
    except ScraperError as e:
        logger.error("scrape_failed", error=str(e))
    ```
    """

    pass


class RetryableError(ScraperError):
    """Transient request failure that may succeed on retry.

    Raised when:
    - API returns 429, 408 or any 5xx status
    - Connection reset, DNS failure or timeout while sending the request
    """

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class RetryExhaustedError(RetryableError):
    """Retryable failure persisted through every configured attempt.

    Recoverable: the orchestrator saves its checkpoint and aborts the
    source so the run can be resumed later from the same offset.
    """

    def __init__(
        self, message: str, attempts: int, status: Optional[int] = None
    ) -> None:
        super().__init__(message, status=status)
        self.attempts = attempts


class TerminalRequestError(ScraperError):
    """Request failed in a way retrying will not fix.

    Raised when:
    - API returns a non-retryable 4xx status (400, 401, 403, 404, ...)
    - Response body is empty or not valid JSON
    - Response JSON does not match the expected schema
    """

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class TransformError(ScraperError):
    """Issue could not be converted into a training record

    Only the offending record is skipped; the page continues.
    """

    pass


class OutputWriteError(ScraperError):
    """Writing a record to the output chunk file failed

    The current source cannot continue without durable output and is
    aborted after a best-effort checkpoint save.
    """

    pass


class SourceAbortedError(ScraperError):
    """A source run stopped early but can be resumed.

    Raised by the orchestrator after the checkpoint has been persisted.
    Callers should report this as "paused, resume by rerunning" rather
    than as an unrecoverable failure.
    """

    def __init__(
        self,
        source_key: str,
        reason: str,
        cursor_offset: int = 0,
        result: Optional[Any] = None,
    ) -> None:
        super().__init__(
            f"Scraping of {source_key} paused at offset {cursor_offset}: {reason}"
        )
        self.source_key = source_key
        self.reason = reason
        self.cursor_offset = cursor_offset
        self.result = result
