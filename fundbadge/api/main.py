"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fundbadge import __version__
from fundbadge.api.middleware import RateLimitMiddleware
from fundbadge.config.settings import Settings, settings
from fundbadge.ingestion.base import CacheManager
from fundbadge.ingestion.github_sponsors import GitHubGraphQLClient, GitHubSponsorsProvider
from fundbadge.ingestion.rate_limiter import RateLimiterRegistry
from fundbadge.services import (
    BadgeGenerator,
    FundingDataService,
    GitHubOAuthService,
    OAuthStateStore,
    TokenEncryptor,
    TokenStorage,
)
from fundbadge.storage.repository import Database

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _secret(value) -> str:
    return value.get_secret_value() if value is not None else ""


def init_services(app: FastAPI, config: Settings) -> None:
    """Construct collaborators once and attach them to ``app.state``."""
    if config.encryption_secret is None:
        raise RuntimeError("ENCRYPTION_SECRET must be set")

    cache = CacheManager(config.redis_url)
    db = Database(config.database_url, echo=config.debug and not config.is_production)
    token_storage = TokenStorage(db, TokenEncryptor(_secret(config.encryption_secret)))

    provider = GitHubSponsorsProvider(
        client=GitHubGraphQLClient(config.github_api_url, config.github_api_timeout),
        admin_token=_secret(config.github_token) or None,
    )

    app.state.cache = cache
    app.state.db = db
    app.state.token_storage = token_storage
    app.state.funding_service = FundingDataService(
        cache=cache,
        credentials=token_storage,
        providers=[provider],
        default_ttl=config.cache_default_ttl,
        max_ttl=config.cache_max_ttl,
    )
    app.state.badge_generator = BadgeGenerator()
    app.state.oauth_service = GitHubOAuthService(
        client_id=config.github_oauth_client_id,
        client_secret=_secret(config.github_oauth_client_secret),
        callback_url=config.github_oauth_callback_url,
        timeout=config.github_api_timeout,
    )
    app.state.state_store = OAuthStateStore(cache)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    logger.info("Starting fundbadge API...")
    init_services(app, app.state.config)

    # Redis cache (non-fatal)
    try:
        await app.state.cache.connect()
        if not await app.state.cache.ping():
            logger.warning("Redis not answering ping, cache degraded")
    except Exception:
        logger.warning("Redis unavailable, caching disabled", exc_info=True)

    # Database
    try:
        await app.state.db.connect()
        await app.state.db.create_tables()
        logger.info("Connected to database")
    except Exception:
        logger.warning("Database connection failed", exc_info=True)

    yield

    # Shutdown
    logger.info("Shutting down fundbadge API...")
    try:
        await app.state.db.disconnect()
    except Exception:
        logger.warning("Database disconnect failed", exc_info=True)
    try:
        await app.state.cache.disconnect()
    except Exception:
        logger.warning("Redis disconnect failed", exc_info=True)
    logger.info("fundbadge API shut down")


def create_app(config: Settings = settings) -> FastAPI:
    app = FastAPI(
        title="fundbadge",
        description="Funding progress badges backed by GitHub Sponsors",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if config.debug else None,
        redoc_url="/redoc" if config.debug else None,
    )
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "HEAD", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RateLimitMiddleware,
        registry=RateLimiterRegistry(config.rate_limit_max, config.rate_limit_window),
    )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"error": {"message": "Internal Server Error", "status_code": 500}},
        )

    from fundbadge.api.routers import auth, badge, debug, health, index

    app.include_router(index.router, tags=["Landing"])
    app.include_router(health.router, tags=["Health"])
    app.include_router(badge.router, prefix="/badge", tags=["Badges"])
    app.include_router(auth.router, prefix="/auth", tags=["Auth"])
    app.include_router(debug.router, prefix="/debug", tags=["Debug"])

    return app


app = create_app()


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run("fundbadge.api.main:app", host=settings.host, port=settings.port)
