"""Request-scoped access to services wired at startup."""

from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

from fundbadge.config.settings import Settings
from fundbadge.ingestion.base import CacheManager
from fundbadge.services import (
    BadgeGenerator,
    FundingDataService,
    GitHubOAuthService,
    OAuthStateStore,
    TokenStorage,
)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATE_DIR))


def get_config(request: Request) -> Settings:
    """Settings the app was created with."""
    return request.app.state.config


def get_cache(request: Request) -> CacheManager:
    return request.app.state.cache


def get_funding_service(request: Request) -> FundingDataService:
    return request.app.state.funding_service


def get_badge_generator(request: Request) -> BadgeGenerator:
    return request.app.state.badge_generator


def get_token_storage(request: Request) -> TokenStorage:
    return request.app.state.token_storage


def get_oauth_service(request: Request) -> GitHubOAuthService:
    return request.app.state.oauth_service


def get_state_store(request: Request) -> OAuthStateStore:
    return request.app.state.state_store


def public_base_url(request: Request) -> str:
    """Base URL as seen by the client, honouring proxy headers."""
    proto = request.headers.get("x-forwarded-proto") or request.url.scheme
    host = request.headers.get("x-forwarded-host") or request.url.netloc
    return f"{proto}://{host}"
