"""
In-process sliding window rate limiting.

Each AI platform owns one limiter. The limiter never rejects a request: when
the window is full it waits until the oldest grant falls out of the window.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import Callable, Deque, Optional

from ai_visibility.utils.logger import get_logger

logger = get_logger(__name__)


class AIRateLimiter:
    """
    Sliding window limiter: at most ``max_requests`` grants in any rolling
    window of ``window_minutes``.

    Safe under concurrent ``acquire()`` calls from the same event loop; one
    lock per instance serializes the check-and-record step.
    """

    def __init__(
        self,
        max_requests: int = 60,
        window_minutes: float = 1.0,
        name: str = "default",
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize rate limiter.

        Args:
            max_requests: Maximum grants allowed inside the window
            window_minutes: Length of the rolling window in minutes
            name: Label used in log events (usually the platform name)
            clock: Monotonic time source in seconds (tests inject a fake)
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_minutes <= 0:
            raise ValueError("window_minutes must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_minutes * 60.0
        self.name = name
        self._clock = clock or time.monotonic
        self.requests: Deque[float] = deque()
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait for a free slot in the window, then record the grant."""
        async with self._lock:
            while True:
                now = self._clock()
                self._evict_expired(now)

                if len(self.requests) < self.max_requests:
                    self.requests.append(now)
                    return

                wait_seconds = self.window_seconds - (now - self.requests[0])
                logger.warning(
                    "Rate limit reached, waiting for a free slot",
                    limiter=self.name,
                    wait_seconds=round(wait_seconds, 3),
                    max_requests=self.max_requests,
                    window_seconds=self.window_seconds,
                )
                await asyncio.sleep(max(wait_seconds, 0.0))

    def _evict_expired(self, now: float) -> None:
        """Drop grants that are no longer inside the window."""
        cutoff = now - self.window_seconds
        while self.requests and self.requests[0] <= cutoff:
            self.requests.popleft()

    @property
    def available_slots(self) -> int:
        """Number of grants that would succeed right now without waiting."""
        self._evict_expired(self._clock())
        return self.max_requests - len(self.requests)

    def reset(self) -> None:
        """Forget every recorded grant."""
        self.requests.clear()
