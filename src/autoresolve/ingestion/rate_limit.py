"""Token-bucket rate limiter for outbound REST calls (resolve commands, per-event lookups)."""

from __future__ import annotations

import asyncio
import time


class TokenBucket:
    """Simple token bucket: refill rate per second, max burst. Non-positive rate disables limiting."""

    def __init__(self, rate: float = 5.0, capacity: int | None = None) -> None:
        self.rate = rate
        self.capacity = capacity or max(1, int(rate * 2))
        self.tokens = float(self.capacity)
        self.last = time.monotonic()
        self._lock = asyncio.Lock()

    def consume(self, n: int = 1) -> bool:
        """Consume n tokens. Return True if allowed, False if not enough."""
        if self.rate <= 0:
            return True
        now = time.monotonic()
        self.tokens = min(self.capacity, self.tokens + (now - self.last) * self.rate)
        self.last = now
        if self.tokens >= n:
            self.tokens -= n
            return True
        return False

    async def wait_for_token(self, n: int = 1) -> None:
        """Sleep until n tokens are available."""
        async with self._lock:
            while not self.consume(n):
                await asyncio.sleep(max(0.01, (n - self.tokens) / self.rate))
