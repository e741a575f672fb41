"""Tests for the GitHub Sponsors provider and GraphQL client."""

import json
import logging
from unittest.mock import AsyncMock

import httpx
import pytest

from fundbadge.exceptions import (
    AccessDenied,
    CredentialRequired,
    InvalidUsername,
    MaxRetriesExceeded,
    RateLimitExceeded,
    UpstreamError,
    UserNotFound,
)
from fundbadge.ingestion.github_sponsors import (
    RATE_LIMIT_QUERY,
    GitHubGraphQLClient,
    GitHubSponsorsProvider,
)

RATE_LIMIT = {"remaining": 4999, "limit": 5000, "resetAt": "2024-01-01T00:00:00Z"}

SPONSORSHIP_DATA = {
    "user": {
        "sponsorshipsAsMaintainer": {
            "totalRecurringMonthlyPriceInCents": 250000,
            "totalCount": 42,
        }
    },
    "rateLimit": RATE_LIMIT,
}


class Upstream:
    """Scripted GraphQL endpoint for ``httpx.MockTransport``."""

    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def ok(data: dict) -> httpx.Response:
    return httpx.Response(200, json={"data": data})


def make_provider(upstream: Upstream, admin_token: str | None = "admin-token"):
    sleep = AsyncMock()
    client = GitHubGraphQLClient(
        url="https://api.github.test/graphql",
        transport=httpx.MockTransport(upstream),
    )
    return GitHubSponsorsProvider(client=client, admin_token=admin_token, sleep=sleep), sleep


class TestValidateUsername:
    """Tests for handle validation."""

    @pytest.mark.parametrize(
        "username",
        ["user", "a", "a1", "user-123", "user-name", "User-With-Caps", "a" * 39],
    )
    def test_valid(self, username):
        """Test accepted handles."""
        assert GitHubSponsorsProvider().validate_username(username) is True

    @pytest.mark.parametrize(
        "username",
        [
            "",
            "-user",
            "user-",
            "user--name",
            "user_name",
            "user.name",
            "user name",
            "user@github",
            "a" * 40,
            "user\n",
            "ſ",
            "\u212a",
            "user٣",
            "İ",
        ],
    )
    def test_invalid(self, username):
        """Test rejected handles."""
        assert GitHubSponsorsProvider().validate_username(username) is False


class TestFetchData:
    """Tests for fetch_data normalization and validation."""

    @pytest.mark.asyncio
    async def test_success(self):
        """Test cents are converted to dollars."""
        upstream = Upstream(ok(SPONSORSHIP_DATA))
        provider, _ = make_provider(upstream)

        record = await provider.fetch_data("testuser", "user-token")

        assert record.platform == "github"
        assert record.username == "testuser"
        assert record.current_amount == 2500
        assert record.currency == "USD"
        assert record.is_recurring is True
        assert record.breakdown == {"sponsors": 42}
        assert record.last_updated.tzinfo is not None

    @pytest.mark.asyncio
    async def test_uses_user_credential(self):
        """Test the per-user token is sent, not the admin token."""
        upstream = Upstream(ok(SPONSORSHIP_DATA))
        provider, _ = make_provider(upstream)

        await provider.fetch_data("testuser", "custom-token")

        request = upstream.requests[0]
        assert request.headers["Authorization"] == "token custom-token"
        assert json.loads(request.content)["variables"] == {"username": "testuser"}

    @pytest.mark.asyncio
    async def test_zero_sponsors(self):
        """Test an account with no sponsors."""
        data = {
            "user": {
                "sponsorshipsAsMaintainer": {
                    "totalRecurringMonthlyPriceInCents": 0,
                    "totalCount": 0,
                }
            },
            "rateLimit": RATE_LIMIT,
        }
        provider, _ = make_provider(Upstream(ok(data)))

        record = await provider.fetch_data("testuser", "token")

        assert record.current_amount == 0
        assert record.breakdown == {"sponsors": 0}

    @pytest.mark.asyncio
    async def test_invalid_username_makes_no_call(self):
        """Test InvalidUsername is raised before any request."""
        upstream = Upstream(ok(SPONSORSHIP_DATA))
        provider, _ = make_provider(upstream)

        with pytest.raises(InvalidUsername, match="invalid--username"):
            await provider.fetch_data("invalid--username", "token")

        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_missing_credential(self):
        """Test CredentialRequired without retry."""
        upstream = Upstream(ok(SPONSORSHIP_DATA))
        provider, sleep = make_provider(upstream)

        with pytest.raises(CredentialRequired):
            await provider.fetch_data("testuser", None)

        assert upstream.requests == []
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_user_absent(self):
        """Test a null user is UserNotFound."""
        data = {"user": None, "rateLimit": RATE_LIMIT}
        provider, _ = make_provider(Upstream(ok(data)))

        with pytest.raises(UserNotFound, match="nonexistent"):
            await provider.fetch_data("nonexistent", "token")

    @pytest.mark.asyncio
    async def test_sponsorships_not_visible(self):
        """Test a null sponsorship record is AccessDenied, not UserNotFound."""
        data = {"user": {"sponsorshipsAsMaintainer": None}, "rateLimit": RATE_LIMIT}
        provider, _ = make_provider(Upstream(ok(data)))

        with pytest.raises(AccessDenied, match="Cannot access sponsor data"):
            await provider.fetch_data("testuser", "token")


class TestClassification:
    """Permanent failures are not retried."""

    @pytest.mark.asyncio
    async def test_not_found(self):
        """Test HTTP 404 becomes UserNotFound after one attempt."""
        upstream = Upstream(httpx.Response(404, json={"message": "Not Found"}))
        provider, sleep = make_provider(upstream)

        with pytest.raises(UserNotFound):
            await provider.fetch_data("testuser", "token")

        assert len(upstream.requests) == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_forbidden_rate_limit(self):
        """Test HTTP 403 mentioning rate limit becomes RateLimitExceeded."""
        upstream = Upstream(
            httpx.Response(403, json={"message": "API rate limit exceeded for user"})
        )
        provider, sleep = make_provider(upstream)

        with pytest.raises(RateLimitExceeded):
            await provider.fetch_data("testuser", "token")

        assert len(upstream.requests) == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_forbidden_with_exhausted_header(self):
        """Test x-ratelimit-remaining: 0 on a 403 is RateLimitExceeded."""
        upstream = Upstream(
            httpx.Response(403, headers={"x-ratelimit-remaining": "0"}, json={"message": "Forbidden"})
        )
        provider, _ = make_provider(upstream)

        with pytest.raises(RateLimitExceeded):
            await provider.fetch_data("testuser", "token")

    @pytest.mark.asyncio
    async def test_graphql_rate_limited(self):
        """Test a RATE_LIMITED GraphQL error is RateLimitExceeded."""
        upstream = Upstream(
            httpx.Response(200, json={"errors": [{"type": "RATE_LIMITED", "message": "slow down"}]})
        )
        provider, _ = make_provider(upstream)

        with pytest.raises(RateLimitExceeded):
            await provider.fetch_data("testuser", "token")

        assert len(upstream.requests) == 1

    @pytest.mark.asyncio
    async def test_plain_forbidden_is_retried(self):
        """Test a 403 without rate-limit indication is retried."""
        upstream = Upstream(httpx.Response(403, json={"message": "Forbidden"}))
        provider, _ = make_provider(upstream)

        with pytest.raises(MaxRetriesExceeded):
            await provider.fetch_data("testuser", "token")

        assert len(upstream.requests) == 3


class TestRetry:
    """Transient failures back off exponentially."""

    @pytest.mark.asyncio
    async def test_succeeds_on_third_attempt(self):
        """Test two failures then success returns the payload after 3 calls."""
        upstream = Upstream(
            httpx.ConnectError("connection refused"),
            httpx.Response(502, text="Bad Gateway"),
            ok(SPONSORSHIP_DATA),
        )
        provider, sleep = make_provider(upstream)

        record = await provider.fetch_data("testuser", "token")

        assert record.current_amount == 2500
        assert len(upstream.requests) == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhausted(self):
        """Test the retry budget ends in MaxRetriesExceeded chained to the last error."""
        upstream = Upstream(httpx.Response(500, text="Internal Server Error"))
        provider, sleep = make_provider(upstream)

        with pytest.raises(MaxRetriesExceeded) as exc_info:
            await provider.fetch_data("testuser", "token")

        assert len(upstream.requests) == 3
        assert sleep.await_count == 2
        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.last_error, UpstreamError)
        assert exc_info.value.__cause__ is exc_info.value.last_error
        assert exc_info.value.last_error.status_code == 500

    @pytest.mark.asyncio
    async def test_unparsable_response_is_retried(self):
        """Test a non-JSON body is treated as transient."""
        upstream = Upstream(
            httpx.Response(200, text="<html>oops</html>"),
            ok(SPONSORSHIP_DATA),
        )
        provider, _ = make_provider(upstream)

        record = await provider.fetch_data("testuser", "token")

        assert record.breakdown == {"sponsors": 42}
        assert len(upstream.requests) == 2

    @pytest.mark.asyncio
    async def test_fetch_with_retry_counts_calls(self):
        """Test the retry helper directly with a flaky coroutine."""
        provider = GitHubSponsorsProvider(sleep=AsyncMock())
        fetch = AsyncMock(side_effect=[ConnectionError("1"), ConnectionError("2"), "payload"])

        result = await provider.fetch_with_retry(fetch)

        assert result == "payload"
        assert fetch.await_count == 3


class TestQuota:
    """Tests for quota reporting."""

    @pytest.mark.asyncio
    async def test_low_quota_warns(self, caplog):
        """Test a low remaining quota after a fetch logs a warning."""
        data = dict(SPONSORSHIP_DATA, rateLimit={**RATE_LIMIT, "remaining": 50})
        provider, _ = make_provider(Upstream(ok(data)))

        with caplog.at_level(logging.WARNING):
            await provider.fetch_data("testuser", "token")

        assert "rate limit is low" in caplog.text
        assert provider.last_rate_limit.remaining == 50

    @pytest.mark.asyncio
    async def test_fetch_quota_uses_admin_token(self):
        """Test fetch_quota queries with the service credential."""
        upstream = Upstream(ok({"rateLimit": RATE_LIMIT}))
        provider, _ = make_provider(upstream, admin_token="admin-token")

        info = await provider.fetch_quota()

        assert info.remaining == 4999
        assert info.limit == 5000
        assert info.reset.year == 2024
        request = upstream.requests[0]
        assert request.headers["Authorization"] == "token admin-token"
        assert json.loads(request.content)["query"] == RATE_LIMIT_QUERY

    @pytest.mark.asyncio
    async def test_fetch_quota_explicit_token(self):
        """Test an explicit admin credential overrides the configured one."""
        upstream = Upstream(ok({"rateLimit": RATE_LIMIT}))
        provider, _ = make_provider(upstream, admin_token=None)

        await provider.fetch_quota("other-admin")

        assert upstream.requests[0].headers["Authorization"] == "token other-admin"

    @pytest.mark.asyncio
    async def test_fetch_quota_without_admin_token(self):
        """Test fetch_quota requires a service credential."""
        provider, _ = make_provider(Upstream(ok({})), admin_token=None)

        with pytest.raises(CredentialRequired):
            await provider.fetch_quota()

    @pytest.mark.asyncio
    async def test_fetch_quota_error_propagates(self):
        """Test upstream failures surface from fetch_quota."""
        provider, _ = make_provider(Upstream(httpx.Response(500, text="boom")))

        with pytest.raises(UpstreamError):
            await provider.fetch_quota()
