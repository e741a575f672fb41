"""OAuth account linking endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import BaseModel, Field

from fundbadge.api.dependencies import (
    get_oauth_service,
    get_state_store,
    get_token_storage,
    public_base_url,
    templates,
)
from fundbadge.config.constants import DEFAULT_GOAL, GITHUB_USERNAME_MAX_LENGTH
from fundbadge.services import GitHubOAuthService, OAuthStateStore, TokenStorage

logger = logging.getLogger(__name__)
router = APIRouter()


class RevokeRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=GITHUB_USERNAME_MAX_LENGTH)


@router.get("/github")
async def start_oauth(
    oauth: GitHubOAuthService = Depends(get_oauth_service),
    states: OAuthStateStore = Depends(get_state_store),
) -> RedirectResponse:
    """Redirect to GitHub's consent screen."""
    state = await states.issue()
    return RedirectResponse(oauth.get_authorization_url(state), status_code=302)


@router.get("/github/callback", response_class=HTMLResponse)
async def oauth_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    oauth: GitHubOAuthService = Depends(get_oauth_service),
    states: OAuthStateStore = Depends(get_state_store),
    tokens: TokenStorage = Depends(get_token_storage),
) -> HTMLResponse:
    """Exchange the code, store the encrypted token and show the badge URL."""
    if not await states.consume(state):
        raise HTTPException(status_code=400, detail="Invalid or expired state parameter")
    if not code:
        raise HTTPException(status_code=400, detail="No authorization code provided")

    try:
        token = await oauth.exchange_code_for_token(code)
        user = await oauth.get_user_info(token.access_token)
        await tokens.save_user_token(
            github_username=user.login,
            github_user_id=str(user.id),
            access_token=token.access_token,
            scope=token.scope,
        )
    except Exception:
        logger.exception("OAuth callback failed")
        raise HTTPException(status_code=500, detail="OAuth authorization failed")

    badge_url = f"{public_base_url(request)}/badge/github/{user.login}/{DEFAULT_GOAL}"
    return templates.TemplateResponse(
        request,
        "auth_success.html",
        {"login": user.login, "badge_url": badge_url},
    )


@router.post("/revoke")
async def revoke_access(
    body: RevokeRequest,
    tokens: TokenStorage = Depends(get_token_storage),
) -> dict[str, Any]:
    """Delete the stored token for a username."""
    deleted = await tokens.delete_user_token(body.username)
    if not deleted:
        raise HTTPException(status_code=404, detail="No stored token for this username")
    return {"success": True, "message": "Access revoked"}


@router.get("/status/{username}")
async def auth_status(
    username: str,
    tokens: TokenStorage = Depends(get_token_storage),
) -> dict[str, Any]:
    """Whether a username has a stored token."""
    return {"username": username, "authorized": await tokens.has_token(username)}
