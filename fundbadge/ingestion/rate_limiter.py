"""Per-client token buckets for inbound request limiting."""

import math
import time
from collections.abc import Callable
from dataclasses import dataclass, field

Clock = Callable[[], float]


@dataclass
class RateLimiter:
    """Token bucket for a single client.

    Attributes:
        rate: Tokens refilled per second
        capacity: Burst size, equal to the requests allowed per window
        clock: Monotonic time source
    """

    rate: float
    capacity: float
    clock: Clock = field(default=time.monotonic, repr=False)
    tokens: float = field(init=False)
    updated_at: float = field(init=False)

    def __post_init__(self) -> None:
        self.tokens = self.capacity
        self.updated_at = self.clock()

    @classmethod
    def from_window(
        cls, max_requests: int, window_seconds: float, clock: Clock = time.monotonic
    ) -> "RateLimiter":
        """Bucket allowing ``max_requests`` per ``window_seconds``."""
        return cls(rate=max_requests / window_seconds, capacity=float(max_requests), clock=clock)

    def _refill(self) -> None:
        now = self.clock()
        self.tokens = min(self.capacity, self.tokens + (now - self.updated_at) * self.rate)
        self.updated_at = now

    def try_acquire(self) -> bool:
        """Take one token if available."""
        self._refill()
        if self.tokens < 1:
            return False
        self.tokens -= 1
        return True

    @property
    def remaining(self) -> int:
        """Whole requests left before the client is limited."""
        self._refill()
        return int(self.tokens)

    @property
    def retry_after(self) -> int:
        """Seconds, rounded up, until the next request would be accepted."""
        self._refill()
        if self.tokens >= 1:
            return 0
        return math.ceil((1 - self.tokens) / self.rate)

    @property
    def is_full(self) -> bool:
        self._refill()
        return self.tokens >= self.capacity


class RateLimiterRegistry:
    """Buckets keyed by client address, all sharing one limit.

    Once ``max_clients`` buckets exist, full buckets (clients idle for a
    whole window) are dropped before a new one is created.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Clock = time.monotonic,
        max_clients: int = 10_000,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.max_clients = max_clients
        self._clock = clock
        self._limiters: dict[str, RateLimiter] = {}

    def __len__(self) -> int:
        return len(self._limiters)

    def get(self, client: str) -> RateLimiter:
        """Get or create the bucket for ``client``."""
        limiter = self._limiters.get(client)
        if limiter is None:
            if len(self._limiters) >= self.max_clients:
                self.prune()
            limiter = RateLimiter.from_window(self.max_requests, self.window_seconds, self._clock)
            self._limiters[client] = limiter
        return limiter

    def prune(self) -> int:
        """Drop buckets that have fully refilled. Returns how many were dropped."""
        idle = [client for client, limiter in self._limiters.items() if limiter.is_full]
        for client in idle:
            del self._limiters[client]
        return len(idle)

    def reset(self, client: str | None = None) -> None:
        """Forget one or all clients."""
        if client:
            self._limiters.pop(client, None)
        else:
            self._limiters.clear()
