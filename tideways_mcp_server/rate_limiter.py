"""Sliding-window rate limiter for outbound Tideways API requests."""

import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable, Deque, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_REQUESTS = 900
DEFAULT_WINDOW_MS = 3_600_000  # 1 hour


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


class RateLimiter:
    """Admit at most ``max_requests`` requests in any trailing ``window_ms``.

    ``acquire`` suspends the caller until a slot is free; requests are never
    dropped. The prune-check-record sequence runs under an ``asyncio.Lock``,
    so concurrent tool calls sharing one limiter are admitted one at a time.

    The local window is authoritative. Quota reported by the server through
    ``update_limits`` only produces a warning.
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_ms: int = DEFAULT_WINDOW_MS,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """
        Initialize the rate limiter.

        Args:
            max_requests: Requests allowed per window
            window_ms: Window length in milliseconds
            clock: Returns the current time in milliseconds (monotonic by default)
            sleep: Coroutine function taking seconds (``asyncio.sleep`` by default)
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")

        self.max_requests = max_requests
        self.window_ms = window_ms
        self._clock = clock or _monotonic_ms
        self._sleep = sleep or asyncio.sleep
        self._requests: Deque[float] = deque()
        self._lock = asyncio.Lock()

    def _prune(self, now: float) -> None:
        while self._requests and now - self._requests[0] >= self.window_ms:
            self._requests.popleft()

    async def acquire(self) -> None:
        """Wait until one more request fits in the window, then record it."""
        async with self._lock:
            while True:
                now = self._clock()
                self._prune(now)

                if len(self._requests) < self.max_requests:
                    self._requests.append(now)
                    return

                wait_ms = self.window_ms - (now - self._requests[0])
                logger.warning(f"Rate limit reached, waiting {wait_ms:.0f}ms")
                await self._sleep(max(wait_ms, 0) / 1000)

    def update_limits(self, remaining: int, reset_epoch_seconds: int) -> None:
        """Record quota reported by the server.

        Only warns when the server says the quota is exhausted; admission is
        still decided by the local window.
        """
        if remaining == 0:
            wait_ms = reset_epoch_seconds * 1000 - time.time() * 1000
            logger.warning(
                f"API rate limit exhausted, resets at {reset_epoch_seconds} "
                f"(in {max(wait_ms, 0):.0f}ms)"
            )

    def pending(self) -> int:
        """Number of requests recorded in the current window."""
        self._prune(self._clock())
        return len(self._requests)
