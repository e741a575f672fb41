"""GitHub OAuth account linking."""

import logging
import secrets
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import httpx

from fundbadge.config.constants import OAUTH_SCOPE, OAUTH_STATE_TTL
from fundbadge.exceptions import OAuthError
from fundbadge.ingestion.base import CacheManager
from fundbadge.ingestion.github_sponsors import USER_AGENT

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
ACCESS_TOKEN_URL = "https://github.com/login/oauth/access_token"
USER_URL = "https://api.github.com/user"


@dataclass
class OAuthToken:
    access_token: str
    token_type: str
    scope: str


@dataclass
class GitHubUser:
    login: str
    id: int
    name: str | None = None
    email: str | None = None


class GitHubOAuthService:
    """OAuth web flow against GitHub."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        callback_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.callback_url = callback_url
        self._timeout = timeout
        self._transport = transport

    def get_authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.callback_url,
            "scope": OAUTH_SCOPE,
            "state": state,
            "allow_signup": "true",
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    async def exchange_code_for_token(self, code: str) -> OAuthToken:
        data = await self._request(
            "POST",
            ACCESS_TOKEN_URL,
            json={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code": code,
            },
            error="Failed to exchange OAuth code for token",
        )
        if not data.get("access_token"):
            raise OAuthError("No access token in GitHub response")

        return OAuthToken(
            access_token=data["access_token"],
            token_type=data.get("token_type", "bearer"),
            scope=data.get("scope", ""),
        )

    async def get_user_info(self, access_token: str) -> GitHubUser:
        data = await self._request(
            "GET",
            USER_URL,
            headers={"Authorization": f"Bearer {access_token}"},
            error="Failed to fetch GitHub user info",
        )
        try:
            return GitHubUser(
                login=data["login"],
                id=int(data["id"]),
                name=data.get("name"),
                email=data.get("email"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise OAuthError("Malformed GitHub user info") from e

    async def _request(self, method: str, url: str, error: str, **kwargs: Any) -> dict[str, Any]:
        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        headers.update(kwargs.pop("headers", {}))
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.request(method, url, headers=headers, **kwargs)
                resp.raise_for_status()
                return resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"{error}: {e}")
            raise OAuthError(error) from e


class OAuthStateStore:
    """One-time OAuth ``state`` values kept in the cache."""

    prefix = "oauth_state"

    def __init__(self, cache: CacheManager, ttl: int = OAUTH_STATE_TTL) -> None:
        self.cache = cache
        self.ttl = ttl

    async def issue(self) -> str:
        state = secrets.token_hex(32)
        await self.cache.set(f"{self.prefix}:{state}", "1", self.ttl)
        return state

    async def consume(self, state: str | None) -> bool:
        """Validate and invalidate a state. Returns False if unknown or expired."""
        if not state:
            return False
        return await self.cache.pop(f"{self.prefix}:{state}") is not None
