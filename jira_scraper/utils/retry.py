"""Retry Handler Utility

Wraps a single request attempt with classification-driven retry and
exponential backoff.

Features:
- Retries 408, 429 and 5xx responses and connection-level failures
- Returns any other completed exchange to the caller untouched
- Deterministic capped backoff: min(initial * multiplier^attempt, max)
- Releases intermediate failed responses between attempts
- Built-in structured logging for observability
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, TypeVar

import aiohttp
import structlog

from jira_scraper.models.config import RetryConfig
from jira_scraper.utils.exceptions import RetryExhaustedError

logger = structlog.get_logger(__name__)

RETRYABLE_STATUSES = frozenset({408, 429})
NETWORK_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, ConnectionError)

T = TypeVar("T")


def is_retryable_status(status: int) -> bool:
    """429, 408 and any 5xx are worth another attempt"""
    return status in RETRYABLE_STATUSES or 500 <= status < 600


class RetryHandler:
    """Async retry handler with capped exponential backoff.

    ``request_fn`` is called once per physical attempt, so any gate it
    applies (such as a rate limiter) runs before every retry too.
    """

    def __init__(
        self,
        config: RetryConfig,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize retry handler with configuration.

        Args:
            config: Retry configuration with attempt count and backoff shape
            sleep: Awaitable sleep used between attempts (injectable for tests)
        """
        self.config = config
        self._sleep = sleep

    def backoff_ms(self, attempt: int) -> float:
        """Backoff in milliseconds after a failed attempt (0-indexed)"""
        base = self.config.initial_backoff_ms * (
            self.config.backoff_multiplier**attempt
        )
        return min(base, self.config.max_backoff_ms)

    def calculate_delay(self, attempt: int) -> float:
        """Backoff in seconds after a failed attempt (0-indexed)"""
        return self.backoff_ms(attempt) / 1000.0

    async def execute(
        self,
        request_fn: Callable[[], Awaitable[T]],
        on_retry: Optional[Callable[[int, Optional[int], float], None]] = None,
    ) -> T:
        """Execute a request with retry logic.

        Args:
            request_fn: Async function performing one attempt and returning
                a response object exposing ``status`` and ``release()``
            on_retry: Optional callback called before each backoff with
                (attempt_number, status_or_None, delay_seconds)

        Returns:
            The first non-retryable response

        Raises:
            RetryExhaustedError: Every attempt failed with a retryable outcome
        """
        max_attempts = self.config.max_retries
        last_status: Optional[int] = None
        last_exception: Optional[BaseException] = None

        for attempt in range(max_attempts):
            try:
                response: Any = await request_fn()
            except NETWORK_ERRORS as e:
                last_status = None
                last_exception = e
                logger.warning(
                    "request_failed",
                    attempt=attempt + 1,
                    max_attempts=max_attempts,
                    error_type=type(e).__name__,
                    error=str(e),
                )
            else:
                if not is_retryable_status(response.status):
                    return response

                last_status = response.status
                last_exception = None
                response.release()

                logger.warning(
                    "rate_limited" if last_status == 429 else "retryable_status",
                    status=last_status,
                    attempt=attempt + 1,
                    max_attempts=max_attempts,
                )

            # No wait follows the final attempt
            if attempt + 1 < max_attempts:
                delay = self.calculate_delay(attempt)
                logger.debug("retry_backoff", attempt=attempt + 1, delay_seconds=delay)
                if on_retry is not None:
                    on_retry(attempt + 1, last_status, delay)
                await self._sleep(delay)

        if last_status is not None:
            message = f"Request failed with status {last_status} after {max_attempts} attempts"
        else:
            message = (
                f"Request failed after {max_attempts} attempts: "
                f"{type(last_exception).__name__}: {last_exception}"
            )
        raise RetryExhaustedError(
            message, attempts=max_attempts, status=last_status
        ) from last_exception
