"""Health check endpoints."""

import time
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from fundbadge.api.dependencies import get_cache, get_funding_service
from fundbadge.config.constants import Platform
from fundbadge.ingestion.base import CacheManager
from fundbadge.services import FundingDataService

router = APIRouter()

_STARTED = time.monotonic()


@router.get("/health")
async def health_check(
    cache: CacheManager = Depends(get_cache),
    funding: FundingDataService = Depends(get_funding_service),
) -> JSONResponse:
    """Redis connectivity, GitHub quota and cache metrics."""
    redis_ok = await cache.ping()

    github: dict[str, Any] = {"accessible": False}
    try:
        quota = await funding.get_provider(Platform.GITHUB).fetch_quota()
        github = {"accessible": True, "rate_limit": quota.to_dict()}
    except Exception as e:
        github["error"] = str(e)

    healthy = redis_ok and github["accessible"]
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "ok" if healthy else "degraded",
            "timestamp": datetime.now(UTC).isoformat(),
            "uptime": round(time.monotonic() - _STARTED, 3),
            "services": {
                "redis": {"connected": redis_ok},
                "github": github,
            },
            "cache": cache.get_metrics(),
            "platforms": funding.get_supported_platforms(),
        },
    )


@router.get("/ping")
async def ping() -> dict[str, Any]:
    """Liveness probe."""
    return {"pong": True, "timestamp": int(time.time() * 1000)}
