"""Tests for rate limiter."""

import pytest

from fundbadge.ingestion.rate_limiter import RateLimiter, RateLimiterRegistry


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class TestRateLimiter:
    """Tests for RateLimiter class."""

    def test_create_from_window(self, clock):
        """Test creating rate limiter from a request window."""
        limiter = RateLimiter.from_window(100, 60, clock)

        assert limiter.rate == 100 / 60
        assert limiter.capacity == 100.0
        assert limiter.remaining == 100

    def test_try_acquire_success(self, clock):
        """Test successful token acquisition."""
        limiter = RateLimiter.from_window(60, 60, clock)

        assert limiter.try_acquire() is True
        assert limiter.remaining == 59

    def test_window_exhaustion(self, clock):
        """Test the bucket allows exactly max_requests in a burst."""
        limiter = RateLimiter.from_window(3, 60, clock)

        results = [limiter.try_acquire() for _ in range(4)]

        assert results == [True, True, True, False]
        assert limiter.remaining == 0

    def test_refill(self, clock):
        """Test tokens come back over time and never exceed capacity."""
        limiter = RateLimiter.from_window(2, 60, clock)
        limiter.try_acquire()
        limiter.try_acquire()

        clock.advance(31)
        assert limiter.try_acquire() is True
        assert limiter.try_acquire() is False

        clock.advance(3600)
        assert limiter.remaining == 2

    def test_retry_after(self, clock):
        """Test the wait estimate for an empty bucket."""
        limiter = RateLimiter.from_window(100, 60, clock)
        assert limiter.retry_after == 0

        for _ in range(100):
            limiter.try_acquire()

        assert limiter.retry_after == 1

    def test_retry_after_slow_window(self, clock):
        """Test the estimate rounds up to whole seconds."""
        limiter = RateLimiter.from_window(1, 3600, clock)
        limiter.try_acquire()

        clock.advance(0.5)

        assert limiter.retry_after == 3600


class TestRateLimiterRegistry:
    """Tests for RateLimiterRegistry."""

    def test_get_creates_new(self, clock):
        """Test getting a new rate limiter."""
        registry = RateLimiterRegistry(100, 60, clock)
        limiter = registry.get("203.0.113.7")

        assert limiter.capacity == 100.0
        assert len(registry) == 1

    def test_get_returns_existing(self, clock):
        """Test getting existing rate limiter."""
        registry = RateLimiterRegistry(100, 60, clock)

        assert registry.get("client") is registry.get("client")

    def test_clients_are_independent(self, clock):
        """Test one client's usage does not drain another's bucket."""
        registry = RateLimiterRegistry(1, 3600, clock)

        assert registry.get("a").try_acquire() is True
        assert registry.get("a").try_acquire() is False
        assert registry.get("b").try_acquire() is True

    def test_prune_drops_idle_clients(self, clock):
        """Test only fully refilled buckets are pruned."""
        registry = RateLimiterRegistry(10, 60, clock)
        registry.get("idle")
        registry.get("busy").try_acquire()

        assert registry.prune() == 1
        assert len(registry) == 1
        assert registry.get("busy").remaining == 9

    def test_prune_when_full(self, clock):
        """Test reaching max_clients evicts idle buckets before adding."""
        registry = RateLimiterRegistry(10, 60, clock, max_clients=2)
        registry.get("a")
        registry.get("b").try_acquire()

        registry.get("c")

        assert len(registry) == 2
        assert registry.get("b").remaining == 9

    def test_reset_single(self, clock):
        """Test resetting a single limiter."""
        registry = RateLimiterRegistry(60, 60, clock)
        limiter1 = registry.get("test1")
        limiter2 = registry.get("test2")

        registry.reset("test1")

        assert registry.get("test1") is not limiter1
        assert registry.get("test2") is limiter2

    def test_reset_all(self, clock):
        """Test resetting all limiters."""
        registry = RateLimiterRegistry(60, 60, clock)
        registry.get("test1")
        registry.get("test2")

        registry.reset()

        assert len(registry) == 0
