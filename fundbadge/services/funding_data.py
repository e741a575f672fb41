"""Funding data service: cache, credentials and provider composition."""

import logging
from collections.abc import Iterable
from typing import Protocol

from fundbadge.exceptions import InvalidUsername, NotAuthorized, UnsupportedPlatform
from fundbadge.ingestion.base import CacheManager, FundingProvider
from fundbadge.ingestion.models import FundingRecord

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    """Read-only credential lookup by username."""

    async def get_user_token(self, github_username: str) -> str | None: ...


def _platform_id(platform: object) -> str:
    # Platform is a str Enum; f-strings would render its name, not its value
    return str(getattr(platform, "value", platform))


class FundingDataService:
    """Single entry point for funding figures.

    Steps run strictly in order: provider lookup, handle validation,
    cache read, credential lookup, provider fetch, TTL decision, cache
    write. Provider and credential errors propagate unchanged. Only the
    quota check and the cache write absorb failures, so a successful
    fetch is never lost to a caching problem.
    """

    def __init__(
        self,
        cache: CacheManager,
        credentials: CredentialStore,
        providers: Iterable[FundingProvider] = (),
        default_ttl: int = 300,
        max_ttl: int = 3600,
    ) -> None:
        self.cache = cache
        self.credentials = credentials
        self.default_ttl = default_ttl
        self.max_ttl = max_ttl
        self._providers: dict[str, FundingProvider] = {}
        for provider in providers:
            self.register_provider(provider)

    def register_provider(self, provider: FundingProvider) -> None:
        self._providers[provider.platform] = provider

    def get_provider(self, platform: str) -> FundingProvider:
        provider = self._providers.get(_platform_id(platform))
        if provider is None:
            raise UnsupportedPlatform(_platform_id(platform))
        return provider

    def get_supported_platforms(self) -> list[str]:
        return list(self._providers)

    async def get_funding_data(
        self,
        platform: str,
        username: str,
        bypass_cache: bool = False,
    ) -> FundingRecord:
        """Return a cached or freshly fetched funding record.

        Raises:
            UnsupportedPlatform: before any cache or credential access
            InvalidUsername: before any cache or credential access
            NotAuthorized: no stored credential for ``username``
            FundingError: any provider failure, unchanged
        """
        provider = self.get_provider(platform)
        if not provider.validate_username(username):
            raise InvalidUsername(username)

        platform_id = provider.platform
        cache_key = CacheManager.funding_key(platform_id, username)

        if not bypass_cache:
            cached = await self._read_cache(cache_key)
            if cached is not None:
                logger.debug(f"Cache hit for {cache_key}")
                return cached

        logger.debug(f"Cache miss for {cache_key}, fetching from provider")

        credential = await self.credentials.get_user_token(username)
        if not credential:
            raise NotAuthorized(username)

        try:
            record = await provider.fetch_data(username, credential)
        except Exception as e:
            logger.error(f"Failed to fetch funding data for {platform_id}/{username}: {e}")
            raise

        ttl = await self._choose_ttl(provider)
        await self._write_cache(cache_key, record, ttl)
        return record

    async def _choose_ttl(self, provider: FundingProvider) -> int:
        try:
            quota = await provider.fetch_quota()
        except Exception as e:
            logger.warning(f"Failed to get rate limit info, using default TTL: {e}")
            return self.default_ttl

        if quota.is_low:
            logger.warning(
                f"Low rate limit on {provider.platform} "
                f"({quota.remaining} remaining), extending cache TTL"
            )
            return self.max_ttl
        return self.default_ttl

    async def _read_cache(self, key: str) -> FundingRecord | None:
        try:
            return await self.cache.get(key, decode=FundingRecord.from_dict)
        except Exception as e:
            logger.warning(f"Ignoring unreadable cache entry {key}: {e}")
            return None

    async def _write_cache(self, key: str, record: FundingRecord, ttl: int) -> None:
        try:
            stored = await self.cache.set(key, record.to_dict(), ttl)
        except Exception as e:
            logger.warning(f"Cache write failed for {key}: {e}")
            return
        if stored is False:
            logger.warning(f"Cache write failed for {key}")
