# objsync/app/security/rate_limiter.py
"""
Per-client request rate limiting.

Token bucket per client address: each bucket holds up to ``capacity``
requests and refills continuously so that ``capacity`` requests are
available again after ``window_seconds``.
"""
import logging
import math
from typing import Dict, Optional

from objsync.app.core.clock import Clock
from objsync.app.core.config import Settings

logger = logging.getLogger(__name__)


class TokenBucket:
    """Token bucket measured on a millisecond clock"""

    def __init__(self, capacity: int, refill_per_ms: float, now_ms: int):
        self.capacity = capacity
        self.refill_per_ms = refill_per_ms
        self.tokens = float(capacity)
        self.last_refill = now_ms

    def refill(self, now_ms: int) -> None:
        elapsed = max(0, now_ms - self.last_refill)
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_per_ms)
        self.last_refill = now_ms

    def consume(self, now_ms: int) -> bool:
        """
        Take one token if available.

        Returns:
            True if the request may proceed
        """
        self.refill(now_ms)
        if self.tokens >= 1:
            self.tokens -= 1
            return True
        return False

    def retry_after_seconds(self) -> int:
        """Whole seconds until the next token is available"""
        missing = max(0.0, 1 - self.tokens)
        wait_ms = round(missing / self.refill_per_ms)
        return max(1, math.ceil(wait_ms / 1000))

    def is_full(self) -> bool:
        return self.tokens >= self.capacity


class RateLimiter:
    def __init__(
        self,
        capacity: int = 1000,
        window_seconds: float = 60,
        max_clients: int = 10000,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize Rate Limiter

        Args:
            capacity: Requests allowed per client in one window
            window_seconds: Time for an empty bucket to refill completely
            max_clients: Tracked clients before idle buckets are pruned
            clock: Time source, wall clock by default
        """
        if capacity < 1 or window_seconds <= 0:
            raise ValueError("Rate limit capacity and window must be positive")

        self.capacity = capacity
        self.window_seconds = window_seconds
        self.max_clients = max_clients
        self.clock = clock or Clock()
        self._refill_per_ms = capacity / (window_seconds * 1000)

        # Client address -> TokenBucket
        self.buckets: Dict[str, TokenBucket] = {}

    @classmethod
    def from_settings(cls, settings: Settings, clock: Optional[Clock] = None) -> "RateLimiter":
        return cls(
            capacity=settings.RATE_LIMIT_MAX,
            window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
            clock=clock,
        )

    def check(self, client: str) -> Optional[int]:
        """
        Count one request from ``client``.

        Returns:
            None if the request is allowed, otherwise the number of seconds
            the client should wait before retrying
        """
        now = self.clock.now_ms()

        bucket = self.buckets.get(client)
        if bucket is None:
            if len(self.buckets) >= self.max_clients:
                self.prune()
            bucket = TokenBucket(self.capacity, self._refill_per_ms, now)
            self.buckets[client] = bucket

        if bucket.consume(now):
            return None

        logger.warning(f"Rate limit exceeded for {client}")
        return bucket.retry_after_seconds()

    def prune(self) -> int:
        """
        Drop buckets that have refilled completely.

        A full bucket behaves exactly like a new one, so nothing is lost.

        Returns:
            Number of buckets removed
        """
        now = self.clock.now_ms()
        idle = []
        for client, bucket in self.buckets.items():
            bucket.refill(now)
            if bucket.is_full():
                idle.append(client)

        for client in idle:
            del self.buckets[client]
        return len(idle)
