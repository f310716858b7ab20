"""
Client-side request pacing for the upstream API.

The volumes API enforces a per-key daily quota and rejects bursts with 429s;
``max_rps`` in the ``[upstream]`` settings turns this limiter on.
"""

import asyncio
import time


class TokenBucketRateLimiter:
    """Token bucket shared by every request a fetcher sends.

    The bucket starts full, so up to ``burst`` requests go out at once;
    after that requests are spaced ``1 / rate`` seconds apart.
    """

    def __init__(self, rate: float, burst: int = 10) -> None:
        if rate <= 0:
            raise ValueError("rate must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")
        self.rate = rate
        self.burst = burst
        self._tokens = float(burst)
        self._updated = time.monotonic()
        self._lock = asyncio.Lock()

    @property
    def available(self) -> float:
        """Tokens available right now, without consuming any."""
        return min(
            self.burst, self._tokens + (time.monotonic() - self._updated) * self.rate
        )

    async def wait(self) -> None:
        """Take one token, sleeping until one is available.

        Waiters queue on the lock, so they are released in arrival order.
        """
        async with self._lock:
            self._refill()
            shortfall = 1.0 - self._tokens
            if shortfall > 0:
                await asyncio.sleep(shortfall / self.rate)
                self._refill()
            self._tokens = max(0.0, self._tokens - 1.0)

    def _refill(self) -> None:
        now = time.monotonic()
        self._tokens = min(self.burst, self._tokens + (now - self._updated) * self.rate)
        self._updated = now
