"""
Async rate limiter shared by all catalog calls.
A bounded permit pool plus a sliding request window.
"""
import asyncio
import logging
import time
from collections import deque
from typing import Callable, Deque

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Limits concurrent and windowed catalog requests.

    Usage:
        limiter = RateLimiter(max_requests=40, window_sec=10)
        async with limiter:
            await client.get(...)

    Waiting suspends only the calling task and can be cancelled.
    The permit is always returned, including on failure or cancellation.
    """

    def __init__(
        self,
        max_requests: int = 40,
        window_sec: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        self._max_requests = max_requests
        self._window_sec = window_sec
        self._clock = clock
        self._semaphore = asyncio.Semaphore(max_requests)
        self._sent: Deque[float] = deque()

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_sec(self) -> float:
        return self._window_sec

    @property
    def recent_requests(self) -> int:
        """Requests started within the current window."""
        self._expire(self._clock())
        return len(self._sent)

    async def acquire(self) -> None:
        """Wait for a permit and a free slot in the window."""
        await self._semaphore.acquire()
        try:
            while True:
                now = self._clock()
                self._expire(now)
                if len(self._sent) < self._max_requests:
                    self._sent.append(now)
                    return
                wait = self._sent[0] + self._window_sec - now
                logger.debug(f"Rate limit window full, waiting {wait:.2f}s")
                await asyncio.sleep(max(wait, 0.01))
        except BaseException:
            self._semaphore.release()
            raise

    def release(self) -> None:
        self._semaphore.release()

    async def __aenter__(self) -> "RateLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()

    def _expire(self, now: float) -> None:
        while self._sent and now - self._sent[0] >= self._window_sec:
            self._sent.popleft()
