"""Pytest configuration and fixtures."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from fundbadge.ingestion.base import CacheManager, FundingProvider
from fundbadge.ingestion.models import FundingRecord, RateLimitInfo


class FakeRedis:
    """In-memory stand-in for ``redis.asyncio.Redis``."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        pass


class BrokenRedis(FakeRedis):
    """Redis client whose every call fails."""

    async def get(self, key: str) -> str | None:
        raise ConnectionError("redis down")

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        raise ConnectionError("redis down")

    async def delete(self, *keys: str) -> int:
        raise ConnectionError("redis down")

    async def ping(self) -> bool:
        raise ConnectionError("redis down")


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def broken_redis() -> BrokenRedis:
    return BrokenRedis()


@pytest.fixture
def cache(fake_redis: FakeRedis) -> CacheManager:
    """Cache manager backed by an in-memory Redis."""
    return CacheManager(client=fake_redis)


@pytest.fixture
def sample_record() -> FundingRecord:
    """A typical funding record: $2,500/month from 42 sponsors."""
    return FundingRecord(
        platform="github",
        username="testuser",
        current_amount=2500.0,
        currency="USD",
        is_recurring=True,
        breakdown={"sponsors": 42},
        last_updated=datetime(2024, 1, 1, tzinfo=UTC),
    )


def _quota(remaining: int, limit: int = 5000) -> RateLimitInfo:
    return RateLimitInfo(
        remaining=remaining,
        limit=limit,
        reset=datetime.now(UTC) + timedelta(hours=1),
    )


@pytest.fixture
def make_quota():
    """Factory for quota snapshots."""
    return _quota


@pytest.fixture
def mock_provider(sample_record: FundingRecord) -> MagicMock:
    """Provider double that accepts any handle and has plenty of quota."""
    provider = MagicMock(spec=FundingProvider)
    provider.platform = "github"
    provider.validate_username.return_value = True
    provider.fetch_data = AsyncMock(return_value=sample_record)
    provider.fetch_quota = AsyncMock(return_value=_quota(4999))
    return provider


@pytest.fixture
def mock_credentials() -> AsyncMock:
    """Credential store holding a token for every username."""
    store = AsyncMock()
    store.get_user_token.return_value = "user-token"
    return store
