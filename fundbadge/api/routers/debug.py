"""Debug endpoints, disabled in production."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from fundbadge.api.dependencies import get_config, get_funding_service
from fundbadge.config.constants import Platform
from fundbadge.config.settings import Settings
from fundbadge.exceptions import FundingError
from fundbadge.services import FundingDataService

router = APIRouter()


@router.get("/github/{username}")
async def debug_github(
    username: str,
    funding: FundingDataService = Depends(get_funding_service),
    config: Settings = Depends(get_config),
) -> dict[str, Any]:
    """Raw sponsorship figures fetched with the service token. Never cached."""
    if config.is_production:
        raise HTTPException(status_code=404, detail="Not Found")

    token = config.github_token.get_secret_value() if config.github_token else None
    provider = funding.get_provider(Platform.GITHUB)
    try:
        payload = await provider.fetch_sponsorship_data(username, token)
    except FundingError as e:
        raise HTTPException(status_code=502, detail=str(e))

    sponsorships = (payload.user or {}).get("sponsorshipsAsMaintainer") or {}
    return {
        "username": username,
        "total_recurring_monthly_price_in_cents": sponsorships.get(
            "totalRecurringMonthlyPriceInCents"
        ),
        "total_count": sponsorships.get("totalCount"),
        "rate_limit": payload.rate_limit.to_dict(),
    }
