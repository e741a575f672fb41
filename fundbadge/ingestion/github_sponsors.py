"""GitHub Sponsors data client.

Sponsorship totals are only visible to the sponsee's own token, so every
funding fetch runs with the user's OAuth credential. The service-level
token is used solely for quota checks.
"""

import asyncio
import re
from datetime import UTC, datetime
from typing import Any

import httpx

from fundbadge.config.constants import Platform
from fundbadge.exceptions import (
    AccessDenied,
    CredentialRequired,
    InvalidUsername,
    RateLimitExceeded,
    UpstreamError,
    UserNotFound,
)
from fundbadge.ingestion.base import FundingProvider, SleepFunc
from fundbadge.ingestion.models import FundingRecord, RateLimitInfo, SponsorshipPayload

USER_AGENT = "fundbadge/1.0"

SPONSORS_QUERY = """
query GetSponsorsData($username: String!) {
  user(login: $username) {
    sponsorshipsAsMaintainer(first: 100, activeOnly: true) {
      totalRecurringMonthlyPriceInCents
      totalCount
    }
  }
  rateLimit {
    remaining
    limit
    resetAt
  }
}
"""

RATE_LIMIT_QUERY = "{ rateLimit { remaining limit resetAt } }"

# Alphanumerics and single hyphens, 1-39 chars, no leading/trailing hyphen
USERNAME_PATTERN = re.compile(
    r"[a-z\d](?:[a-z\d]|-(?=[a-z\d])){0,38}", re.IGNORECASE | re.ASCII
)


class GitHubGraphQLClient:
    """Thin httpx wrapper around the GitHub GraphQL endpoint.

    Returns the ``data`` object of a response. Quota exhaustion is raised
    as ``RateLimitExceeded``; every other failure becomes a retryable
    ``UpstreamError`` carrying the HTTP status when there is one.
    """

    def __init__(
        self,
        url: str = "https://api.github.com/graphql",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport

    async def query(
        self,
        query: str,
        variables: dict[str, Any] | None,
        token: str,
    ) -> dict[str, Any]:
        headers = {
            "Authorization": f"token {token}",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }
        payload = {"query": query, "variables": variables or {}}

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.post(self._url, json=payload, headers=headers)
        except httpx.TransportError as e:
            raise UpstreamError(f"GitHub API request failed: {e}") from e

        self._check_status(resp)

        try:
            body = resp.json()
        except ValueError as e:
            raise UpstreamError("Unparsable GitHub API response", resp.status_code) from e
        if not isinstance(body, dict):
            raise UpstreamError("Unexpected GitHub API response shape", resp.status_code)

        errors = body.get("errors") or []
        for error in errors:
            if error.get("type") == "RATE_LIMITED":
                raise RateLimitExceeded()

        data = body.get("data")
        if not isinstance(data, dict):
            message = "; ".join(e.get("message", "") for e in errors)
            raise UpstreamError(message or "No data in GitHub API response", resp.status_code)
        return data

    @staticmethod
    def _check_status(resp: httpx.Response) -> None:
        if resp.status_code < 400:
            return
        if resp.status_code in (403, 429):
            remaining = resp.headers.get("x-ratelimit-remaining")
            if remaining == "0" or "rate limit" in resp.text.lower():
                raise RateLimitExceeded()
        raise UpstreamError(
            f"GitHub API returned HTTP {resp.status_code}", resp.status_code
        )


class GitHubSponsorsProvider(FundingProvider):
    """GitHub Sponsors funding provider."""

    platform = Platform.GITHUB.value

    def __init__(
        self,
        client: GitHubGraphQLClient | None = None,
        admin_token: str | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        super().__init__(sleep=sleep)
        self._client = client or GitHubGraphQLClient()
        self._admin_token = admin_token
        self.last_rate_limit: RateLimitInfo | None = None

    def validate_username(self, username: str) -> bool:
        return bool(USERNAME_PATTERN.fullmatch(username))

    async def fetch_sponsorship_data(
        self, username: str, credential: str | None
    ) -> SponsorshipPayload:
        """Query raw sponsorship data for ``username``.

        Raises:
            InvalidUsername: before any network call
            CredentialRequired: when ``credential`` is empty
            UserNotFound: upstream answered 404
            RateLimitExceeded: upstream quota is exhausted
            MaxRetriesExceeded: transient failures outlived the retry budget
        """
        if not self.validate_username(username):
            raise InvalidUsername(username)
        if not credential:
            raise CredentialRequired("GitHub token is required for this user")

        return await self.fetch_with_retry(
            lambda: self._query_sponsors(username, credential)
        )

    async def fetch_data(self, username: str, credential: str | None) -> FundingRecord:
        self.logger.debug(f"Fetching GitHub Sponsors data for {username}")
        payload = await self.fetch_sponsorship_data(username, credential)

        if payload.user is None:
            raise UserNotFound(username)

        sponsorships = payload.user.get("sponsorshipsAsMaintainer")
        if sponsorships is None:
            raise AccessDenied(username)

        cents = sponsorships.get("totalRecurringMonthlyPriceInCents") or 0
        return FundingRecord(
            platform=self.platform,
            username=username,
            current_amount=cents / 100,
            currency="USD",
            is_recurring=True,
            breakdown={"sponsors": sponsorships.get("totalCount") or 0},
            last_updated=datetime.now(UTC),
        )

    async def fetch_quota(self, admin_token: str | None = None) -> RateLimitInfo:
        token = admin_token or self._admin_token
        if not token:
            raise CredentialRequired("GitHub token is required for rate limit checks")

        try:
            data = await self._client.query(RATE_LIMIT_QUERY, None, token)
            info = RateLimitInfo.from_graphql(data["rateLimit"])
        except Exception as e:
            self.logger.error(f"Failed to fetch rate limit info: {e}")
            raise

        self.last_rate_limit = info
        return info

    async def _query_sponsors(self, username: str, token: str) -> SponsorshipPayload:
        try:
            data = await self._client.query(SPONSORS_QUERY, {"username": username}, token)
        except UpstreamError as e:
            if e.status_code == 404:
                raise UserNotFound(username) from e
            self.logger.error(f"GitHub API query failed for {username}: {e}")
            raise

        try:
            rate_limit = RateLimitInfo.from_graphql(data["rateLimit"])
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamError("Malformed rateLimit in GitHub API response") from e

        self.last_rate_limit = rate_limit
        if rate_limit.is_low:
            self.logger.warning(
                f"GitHub API rate limit is low: {rate_limit.remaining} remaining"
            )

        return SponsorshipPayload(user=data.get("user"), rate_limit=rate_limit)
