"""Base classes for funding data ingestion."""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import redis.asyncio as redis

from fundbadge.config.constants import BASE_DELAY_SECONDS, CACHE_KEY_PREFIX, MAX_ATTEMPTS
from fundbadge.exceptions import FundingError, MaxRetriesExceeded
from fundbadge.ingestion.models import FundingRecord, RateLimitInfo

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


class CacheManager:
    """Redis-based cache manager with hit/miss accounting."""

    def __init__(self, url: str | None = None, client: redis.Redis | None = None) -> None:
        self._url = url
        self._redis = client
        self.hits = 0
        self.misses = 0

    async def connect(self) -> None:
        """Connect to Redis."""
        if self._redis is None:
            if not self._url:
                raise RuntimeError("Redis URL not configured")
            self._redis = redis.from_url(
                self._url,
                encoding="utf-8",
                decode_responses=True,
            )
            logger.info("Connected to Redis")

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            logger.info("Disconnected from Redis")

    @staticmethod
    def funding_key(platform: str, username: str) -> str:
        """Cache key for a funding record. Username case is preserved."""
        return f"{CACHE_KEY_PREFIX}:{platform}:{username}"

    async def get(
        self, key: str, decode: Callable[[Any], Any] | None = None
    ) -> Any | None:
        """Get value from cache.

        ``decode`` is applied to the JSON value; an entry it rejects counts
        as a miss, like any Redis or JSON error.
        """
        try:
            if not self._redis:
                await self.connect()
            data = await self._redis.get(key)
            value = json.loads(data) if data is not None else None
            if value is not None and decode is not None:
                value = decode(value)
        except Exception as e:
            logger.warning(f"Cache get error for {key}: {e}")
            self.misses += 1
            return None

        if value is None:
            self.misses += 1
            return None

        self.hits += 1
        return value

    async def set(self, key: str, value: Any, ttl: int) -> bool:
        """Set value in cache with TTL."""
        try:
            if not self._redis:
                await self.connect()
            await self._redis.setex(key, ttl, json.dumps(value, default=str))
            return True
        except Exception as e:
            logger.warning(f"Cache set error for {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        """Delete key from cache."""
        try:
            if not self._redis:
                await self.connect()
            await self._redis.delete(key)
            return True
        except Exception as e:
            logger.warning(f"Cache delete error for {key}: {e}")
            return False

    async def pop(self, key: str) -> Any | None:
        """Read and delete a key. Does not touch hit/miss counters."""
        try:
            if not self._redis:
                await self.connect()
            data = await self._redis.get(key)
            if data is None:
                return None
            await self._redis.delete(key)
            return json.loads(data)
        except Exception as e:
            logger.warning(f"Cache pop error for {key}: {e}")
            return None

    async def ping(self) -> bool:
        """Check Redis connectivity."""
        try:
            if not self._redis:
                await self.connect()
            return bool(await self._redis.ping())
        except Exception:
            return False

    def get_metrics(self) -> dict[str, Any]:
        total = self.hits + self.misses
        hit_rate = (self.hits / total) * 100 if total > 0 else 0.0
        return {
            "hits": self.hits,
            "misses": self.misses,
            "total": total,
            "hit_rate": f"{hit_rate:.2f}%",
        }


class FundingProvider(ABC):
    """Abstract base class for funding platforms.

    Concrete providers validate handles, fetch funding records with a
    per-user credential and report upstream quota. The retry loop lives
    here so every provider shares the same backoff policy.
    """

    platform: str = "base"
    max_attempts: int = MAX_ATTEMPTS
    base_delay: float = BASE_DELAY_SECONDS

    def __init__(self, sleep: SleepFunc = asyncio.sleep) -> None:
        self._sleep = sleep
        self.logger = logging.getLogger(f"provider.{self.platform}")

    @abstractmethod
    def validate_username(self, username: str) -> bool:
        """Check a handle against the platform's grammar."""
        ...

    @abstractmethod
    async def fetch_data(self, username: str, credential: str | None) -> FundingRecord:
        """Fetch a fresh funding record using the account's credential."""
        ...

    @abstractmethod
    async def fetch_quota(self) -> RateLimitInfo:
        """Fetch remaining upstream quota with the service credential."""
        ...

    async def fetch_with_retry(self, fetch_func: Callable[[], Awaitable[T]]) -> T:
        """Run ``fetch_func`` with exponential backoff.

        Classified failures (``FundingError`` subclasses) are raised at
        once. Anything else is retried up to ``max_attempts`` times total,
        sleeping ``base_delay * 2**attempt`` between attempts.

        Raises:
            MaxRetriesExceeded: chained from the last underlying error
        """
        last_error: Exception | None = None
        for attempt in range(self.max_attempts):
            try:
                return await fetch_func()
            except FundingError:
                raise
            except Exception as e:
                last_error = e
                if attempt == self.max_attempts - 1:
                    break
                delay = self.base_delay * (2**attempt)
                self.logger.warning(
                    f"Attempt {attempt + 1}/{self.max_attempts} failed ({e}), "
                    f"retrying in {delay:.1f}s"
                )
                await self._sleep(delay)

        raise MaxRetriesExceeded(self.max_attempts, last_error) from last_error

