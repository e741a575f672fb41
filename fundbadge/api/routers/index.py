"""Landing page."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from fundbadge.api.dependencies import get_config, public_base_url, templates
from fundbadge.config.constants import DEFAULT_GOAL
from fundbadge.config.settings import Settings

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request, config: Settings = Depends(get_config)
) -> HTMLResponse:
    base_url = (config.public_base_url or public_base_url(request)).rstrip("/")
    username = config.badge_example_username
    if username:
        example_url = f"{base_url}/badge/github/{username}/{DEFAULT_GOAL}"
    else:
        example_url = f"{base_url}/badge/sample/{DEFAULT_GOAL}"

    return templates.TemplateResponse(
        request,
        "index.html",
        {"example_url": example_url, "example_username": username or "your-username"},
    )
