"""Rate limiting implementation for GitLab API calls."""

import asyncio
import time


class RateLimiter:
    """Token bucket rate limiter for API requests."""

    def __init__(self, requests_per_second: float = 10.0):
        """Initialize rate limiter.

        Args:
            requests_per_second: Maximum requests per second allowed
        """
        self.requests_per_second = requests_per_second
        self.tokens = requests_per_second
        self.last_update = time.monotonic()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self.last_update
        self.tokens = min(
            self.requests_per_second,
            self.tokens + elapsed * self.requests_per_second,
        )
        self.last_update = now

    def _sleep_time(self) -> float:
        return (1 - self.tokens) / self.requests_per_second

    async def acquire(self) -> None:
        """Acquire a token for making a request (async version).

        Blocks until a token is available.
        """
        async with self._lock:
            self._refill()
            if self.tokens >= 1:
                self.tokens -= 1
                return
            await asyncio.sleep(self._sleep_time())
            self.tokens = 0
            self.last_update = time.monotonic()

    def acquire_sync(self) -> None:
        """Acquire a token for making a request (synchronous version).

        Blocks until a token is available.
        """
        self._refill()
        if self.tokens >= 1:
            self.tokens -= 1
            return
        time.sleep(self._sleep_time())
        self.tokens = 0
        self.last_update = time.monotonic()
