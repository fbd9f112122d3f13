"""Config sync endpoints - the frontend's side of the config channel.

- GET  /api/config         current snapshot
- PUT  /api/config         frontend publishes a new config (provenance=frontend)
- GET  /api/config/stream  SSE stream of snapshots

Hey future me - the stream takes ?own=frontend so a client can let the server drop
the snapshots it published itself (anti-echo). Without it every snapshot comes
through and the client MUST skip provenance == "frontend" on its own.
"""

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import pydantic
from fastapi import APIRouter, Body, Depends, Query
from sse_starlette.sse import EventSourceResponse

from gamepresence.api.dependencies import get_config_channel
from gamepresence.application.services.config_sync import (
    ConfigSyncChannel,
    Provenance,
    StateSnapshot,
)
from gamepresence.domain.entities import AppConfig
from gamepresence.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/config", tags=["config"])


def snapshot_to_wire(snapshot: StateSnapshot[AppConfig]) -> dict[str, Any]:
    return {
        "provenance": snapshot.provenance.value,
        "version": snapshot.version,
        "data": snapshot.data.to_wire(),
    }


@router.get("")
async def get_config(
    channel: ConfigSyncChannel = Depends(get_config_channel),
) -> dict[str, Any]:
    """Current config snapshot."""
    return snapshot_to_wire(channel.current())


@router.put("")
async def put_config(
    payload: dict[str, Any] = Body(...),
    channel: ConfigSyncChannel = Depends(get_config_channel),
) -> dict[str, Any]:
    """Publish a config edited in the frontend."""
    try:
        config = AppConfig.from_wire(payload)
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid config: {e.error_count()} error(s): {e.errors()[0]['msg']}") from e

    snapshot = channel.publish(Provenance.FRONTEND, config)
    return snapshot_to_wire(snapshot)


@router.get("/stream")
async def stream_config(
    own: Provenance | None = Query(
        None, description="Drop snapshots published by this side"
    ),
    channel: ConfigSyncChannel = Depends(get_config_channel),
) -> EventSourceResponse:
    """Stream config snapshots via SSE, starting with the current one."""

    async def event_generator() -> AsyncIterator[dict[str, Any]]:
        # Subscribe BEFORE sending the initial value so nothing published in between is lost
        subscription = channel.subscribe()
        yield {"event": "config", "data": json.dumps(snapshot_to_wire(subscription.borrow()))}
        async for snapshot in subscription:
            if own is not None and snapshot.provenance == own:
                continue
            yield {"event": "config", "data": json.dumps(snapshot_to_wire(snapshot))}
        logger.debug("Config stream ended (channel closed)")

    return EventSourceResponse(event_generator())
