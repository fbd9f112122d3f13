"""Xbox account + store lookup endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query

from gamepresence.api.dependencies import get_session_store, get_store_client
from gamepresence.application.services.sessions import SessionStore
from gamepresence.domain.entities import Platform
from gamepresence.infrastructure.integrations.xbox_store_client import XboxStoreClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/xbox", tags=["xbox"])


@router.get("/session")
async def session_status(
    session_store: SessionStore = Depends(get_session_store),
) -> dict[str, Any]:
    """Whether an Xbox session token is held, and for whom. Never returns the token."""
    token = session_store.get(Platform.XBOX)
    if token is None:
        return {"authenticated": False}
    return {
        "authenticated": True,
        "gamertag": token.gamertag,
        "xuid": token.user_id,
        "notAfter": token.not_after,
    }


@router.get("/autosuggest")
async def autosuggest(
    query: str = Query(..., min_length=1, description="Game title to look up"),
    store_client: XboxStoreClient = Depends(get_store_client),
) -> dict[str, Any] | None:
    """Best matching Microsoft Store game for a title, or null."""
    match = await store_client.autosuggest(query)
    return match.to_dict() if match is not None else None
