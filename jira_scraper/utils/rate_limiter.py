import asyncio
import time
from typing import Awaitable, Callable, Optional

import structlog

logger = structlog.get_logger()


class RateLimiter:
    """Minimum-interval rate limiter for API governance

    Spaces permitted requests at least ``1 / max_requests_per_second``
    seconds apart, measured from the start of one request to the start
    of the next.
    """

    def __init__(
        self,
        max_requests_per_second: float = 5,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_requests_per_second <= 0:
            raise ValueError("max_requests_per_second must be positive")
        self.min_interval = 1.0 / max_requests_per_second
        self._clock = clock
        self._sleep = sleep
        self._last_request: Optional[float] = None
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait until the next request is permitted"""
        async with self._lock:
            if self._last_request is not None:
                elapsed = self._clock() - self._last_request
                wait_time = self.min_interval - elapsed
                if wait_time > 0:
                    logger.debug("rate_limit_wait", wait_seconds=round(wait_time, 3))
                    await self._sleep(wait_time)

            # Stamp before releasing so spacing is start-to-start
            self._last_request = self._clock()
