"""Authorization command endpoints.

Hey future me - the frontend's "Connect account" button hits
POST /api/{platform}/authorize and waits (it can take minutes - the user is
signing in). The answer is always 200 with {"success": bool, "error": str}:
the UI just shows the message, it never needs a status code to branch on.

The browser comes back to GET /api/xbox/authorize/redirect after sign-in; that
route only hands the URL to the waiting surface, all checks happen in the
token exchange.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from gamepresence.api.dependencies import get_surface, get_token_exchange
from gamepresence.application.services.token_exchange import TokenExchangeOrchestrator
from gamepresence.domain.entities import Platform
from gamepresence.domain.exceptions import AuthError, ConfigurationError
from gamepresence.infrastructure.surfaces import LoopbackBrowserSurface

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

AUTHORIZABLE_PLATFORMS = frozenset({Platform.XBOX})


class AuthorizeResult(BaseModel):
    """Outcome of one authorization command."""

    success: bool
    error: str | None = None


def _page(message: str) -> str:
    return (
        "<!DOCTYPE html><html><head><title>GamePresence</title></head>"
        f"<body><h2>{message}</h2></body></html>"
    )


@router.post(
    "/{platform}/authorize",
    response_model=AuthorizeResult,
    response_model_exclude_none=True,
)
async def start_authorization(
    platform: str,
    reauthorize: bool = Query(False, description="Show the account picker again"),
    token_exchange: TokenExchangeOrchestrator = Depends(get_token_exchange),
) -> AuthorizeResult:
    """Run the sign-in flow for a platform and report success or a message."""
    try:
        target = Platform(platform)
    except ValueError:
        return AuthorizeResult(success=False, error=f"Unknown platform: {platform}")
    if target not in AUTHORIZABLE_PLATFORMS:
        return AuthorizeResult(
            success=False, error=f"Authorization is not supported for {target.value}"
        )

    try:
        await token_exchange.authenticate(force_reauthorize=reauthorize)
    except (AuthError, ConfigurationError) as e:
        logger.warning(f"{target.value} authorization failed: {e.message}")
        return AuthorizeResult(success=False, error=e.message)

    return AuthorizeResult(success=True)


@router.get("/xbox/authorize/redirect", response_class=HTMLResponse)
async def authorization_redirect(
    request: Request,
    surface: LoopbackBrowserSurface = Depends(get_surface),
) -> HTMLResponse:
    """Capture the provider redirect for the waiting sign-in."""
    if surface.deliver(str(request.url)):
        return HTMLResponse(_page("Sign-in received. You can close this window."))
    return HTMLResponse(_page("No sign-in is in progress."), status_code=409)


@router.post(
    "/xbox/signout", response_model=AuthorizeResult, response_model_exclude_none=True
)
async def sign_out(
    token_exchange: TokenExchangeOrchestrator = Depends(get_token_exchange),
) -> AuthorizeResult:
    """Forget the Xbox session and clear the gamertag from the shared config."""
    if not await token_exchange.sign_out():
        return AuthorizeResult(success=False, error="Not signed in")
    return AuthorizeResult(success=True)


@router.post("/xbox/authorize/cancel", response_model=AuthorizeResult)
async def cancel_authorization(
    surface: LoopbackBrowserSurface = Depends(get_surface),
) -> AuthorizeResult:
    """Abort a waiting sign-in (the user gave up on the browser window)."""
    if surface.cancel() == 0:
        return AuthorizeResult(success=False, error="No sign-in is in progress")
    return AuthorizeResult(success=True)
