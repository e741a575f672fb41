"""Funding data ingestion module."""

from .base import CacheManager, FundingProvider
from .github_sponsors import GitHubGraphQLClient, GitHubSponsorsProvider
from .models import FundingRecord, RateLimitInfo, SponsorshipPayload
from .rate_limiter import RateLimiter, RateLimiterRegistry

__all__ = [
    "CacheManager",
    "FundingProvider",
    "GitHubGraphQLClient",
    "GitHubSponsorsProvider",
    "FundingRecord",
    "RateLimitInfo",
    "SponsorshipPayload",
    "RateLimiter",
    "RateLimiterRegistry",
]
