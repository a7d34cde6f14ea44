"""
Request pacing for the Zotero Web API.

Enforces a minimum interval between requests and honors server-directed
cooldowns (``Backoff`` / ``Retry-After``). One limiter belongs to one
client instance; state lives for the process only.
"""

import asyncio
from collections.abc import Awaitable, Callable
import logging
import time

logger = logging.getLogger(__name__)

# Minimum spacing between requests, in seconds
DEFAULT_REQUEST_INTERVAL = 1.0


class RateLimiter:
    """
    Serializing gate in front of every outbound request.

    ``acquire()`` holds a lock while it waits, so concurrent callers on the
    same client queue up instead of observing the same "clear to send"
    state and firing together.
    """

    def __init__(
        self,
        min_interval: float = DEFAULT_REQUEST_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self.last_request_at: float | None = None
        self.backoff_until: float = 0.0

    def compute_wait(self, now: float | None = None) -> float:
        """Seconds to wait before the next request may be sent."""
        if now is None:
            now = self._clock()

        backoff_wait = max(0.0, self.backoff_until - now)

        interval_wait = 0.0
        if self.last_request_at is not None:
            interval_wait = max(0.0, self.min_interval - (now - self.last_request_at))

        return max(backoff_wait, interval_wait)

    async def acquire(self) -> float:
        """
        Wait until a request may be sent, then record it as sent.

        Returns:
            Seconds actually waited
        """
        async with self._lock:
            wait = self.compute_wait()
            if wait > 0:
                logger.debug(f"Rate limiting: waiting {wait:.2f}s")
                await self._sleep(wait)
            self.last_request_at = self._clock()
            return wait

    def extend_backoff(self, seconds: float) -> None:
        """Hold off all requests for ``seconds`` from now."""
        if seconds <= 0:
            return
        until = self._clock() + seconds
        if until > self.backoff_until:
            logger.warning(f"Zotero API requested backoff of {seconds:.0f}s")
            self.backoff_until = until

    @property
    def backoff_remaining(self) -> float:
        return max(0.0, self.backoff_until - self._clock())
