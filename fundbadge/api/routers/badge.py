"""Badge endpoints."""

import hashlib
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Request, Response
from pydantic import BaseModel, Field

from fundbadge.api.dependencies import get_badge_generator, get_funding_service
from fundbadge.config.constants import MAX_AMOUNT, BadgeStyle
from fundbadge.exceptions import FundingError
from fundbadge.services import BadgeGenerator, FundingDataService

logger = logging.getLogger(__name__)
router = APIRouter()

SVG_MEDIA_TYPE = "image/svg+xml;charset=utf-8"
SAMPLE_PROGRESS = 0.68


class BadgeQuery(BaseModel):
    """Query options shared by all badge endpoints."""

    style: BadgeStyle = BadgeStyle.FLAT
    label: str = Field(default="Funding", max_length=50)
    logo: str | None = Field(default=None, max_length=20, pattern=r"^[a-z0-9-]+$")
    color: str | None = Field(default=None, pattern=r"^[0-9a-fA-F]{6}$")
    refresh: bool = False
    demo: bool = False
    current: float | None = Field(default=None, gt=0, le=MAX_AMOUNT)


Goal = Annotated[float, Path(gt=0, le=MAX_AMOUNT)]


def _etag(svg: str) -> str:
    return f'"{hashlib.md5(svg.encode()).hexdigest()[:27]}"'


def _svg_response(svg: str, cache_control: str, etag: str | None = None) -> Response:
    headers = {
        "Cache-Control": cache_control,
        "X-Content-Type-Options": "nosniff",
    }
    if etag:
        headers["ETag"] = etag
    return Response(content=svg, media_type=SVG_MEDIA_TYPE, headers=headers)


def _render(badges: BadgeGenerator, current: float, goal: float, query: BadgeQuery) -> str:
    return badges.generate_funding_badge(
        current=current,
        goal=goal,
        style=query.style.value,
        label=query.label,
        logo=query.logo,
        color=query.color,
    )


@router.get("/sample/{goal}")
async def sample_badge(
    goal: Goal,
    query: Annotated[BadgeQuery, Query()],
    badges: BadgeGenerator = Depends(get_badge_generator),
) -> Response:
    """Demo badge with a made-up current amount."""
    current = query.current if query.current is not None else round(goal * SAMPLE_PROGRESS)
    svg = _render(badges, current, goal, query)
    return _svg_response(svg, "public, max-age=3600, s-maxage=3600", _etag(svg))


@router.get("/{platform}/{username}/{goal}")
async def funding_badge(
    request: Request,
    platform: str,
    username: str,
    goal: Goal,
    query: Annotated[BadgeQuery, Query()],
    badges: BadgeGenerator = Depends(get_badge_generator),
    funding: FundingDataService = Depends(get_funding_service),
) -> Response:
    """Funding progress badge for a connected account.

    Failures still answer 200 with an error badge so README images render;
    the error badge's cache lifetime depends on the failure kind.
    """
    try:
        if query.demo:
            current = query.current if query.current is not None else round(goal * SAMPLE_PROGRESS)
        else:
            record = await funding.get_funding_data(platform, username, query.refresh)
            current = record.current_amount

        svg = _render(badges, current, goal, query)
    except FundingError as e:
        logger.warning(f"Badge error for {platform}/{username}: {e}")
        return _svg_response(
            badges.generate_error_badge(e.label),
            f"public, max-age={e.error_cache_seconds}",
        )
    except Exception:
        logger.exception(f"Failed to generate badge for {platform}/{username}")
        return _svg_response(
            badges.generate_error_badge(FundingError.label),
            f"public, max-age={FundingError.error_cache_seconds}",
        )

    max_age = 3600 if query.demo else 300
    cache_control = f"public, max-age={max_age}, s-maxage={max_age}"
    etag = _etag(svg)
    if request.headers.get("if-none-match") == etag:
        return Response(
            status_code=304, headers={"ETag": etag, "Cache-Control": cache_control}
        )

    return _svg_response(svg, cache_control, etag)
