# ABOUTME: Async token-bucket rate limiter used to throttle requests to a single wiki
# ABOUTME: Callers wait for a token instead of being rejected; waits honour task cancellation

import asyncio
import time
from collections.abc import Callable

from wiki_navigator.utils.logging import get_logger

logger = get_logger(__name__)


class TokenBucket:
    """Token bucket refilling at ``rate`` tokens per second up to ``capacity``.

    A bucket with capacity 1 admits at most one request immediately and then spaces
    the rest ``1 / rate`` seconds apart. Waiters are not served in FIFO order.

    Args:
        rate: Tokens added per second (requests per second)
        capacity: Maximum burst size
        clock: Monotonic time source in seconds
    """

    def __init__(self, rate: float, capacity: int = 1, clock: Callable[[], float] = time.monotonic):
        if rate <= 0:
            raise ValueError("rate must be positive")
        if capacity < 1:
            raise ValueError("capacity must be at least 1")

        self.rate = rate
        self.capacity = capacity
        self._clock = clock
        self._tokens = float(capacity)
        self._updated_at = clock()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = self._clock()
        self._tokens = min(self.capacity, self._tokens + (now - self._updated_at) * self.rate)
        self._updated_at = now

    async def acquire(self) -> None:
        """Take one token, sleeping until one is available.

        Cancelling the awaiting task aborts the wait without consuming a token.
        """
        async with self._lock:
            while True:
                self._refill()
                if self._tokens >= 1:
                    self._tokens -= 1
                    return
                delay = (1 - self._tokens) / self.rate
                logger.debug("Waiting for rate limit token", delay_seconds=round(delay, 3))
                await asyncio.sleep(delay)

    @property
    def available_tokens(self) -> float:
        self._refill()
        return self._tokens
