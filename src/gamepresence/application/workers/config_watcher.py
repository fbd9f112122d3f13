"""Backend side of the config channel - reacts to frontend edits.

Hey future me - this is the backend's ONLY subscriber. It watches with
own=BACKEND, so the snapshots the token exchange publishes never come back here.
If a reaction ever needs to change the config, publish the derived copy with
Provenance.BACKEND - never re-publish the frontend's snapshot as-is.
"""

import asyncio
import logging

from gamepresence.application.services.config_sync import (
    ConfigSyncChannel,
    Provenance,
    StateSnapshot,
)
from gamepresence.application.services.sessions import SessionStore
from gamepresence.domain.entities import AppConfig, Platform

logger = logging.getLogger(__name__)

WATCHED_SERVICES = ("nintendo", "playstation", "steam", "twitch", "xbox")


class BackendConfigWatcher:
    """Logs service toggles and restores the Xbox identity if the frontend drops it."""

    def __init__(self, channel: ConfigSyncChannel, session_store: SessionStore) -> None:
        self._channel = channel
        self._session_store = session_store
        self._last = channel.current().data
        self._task: asyncio.Task[None] | None = None
        self.reactions = 0

    def start(self) -> None:
        self._task = asyncio.create_task(self.run(), name="config-watcher")

    async def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def run(self) -> None:
        async for snapshot in self._channel.watch(own=Provenance.BACKEND):
            self.handle(snapshot)

    def handle(self, snapshot: StateSnapshot[AppConfig]) -> None:
        """React to one frontend snapshot."""
        self.reactions += 1
        config = snapshot.data
        for name in WATCHED_SERVICES:
            before = self._last.services.is_enabled(name)
            after = config.services.is_enabled(name)
            if before != after:
                logger.info(f"{name} {'enabled' if after else 'disabled'} by frontend")
        self._last = config

        # The gamertag is derived from the session token, not user-editable. If the
        # frontend sends a config without it while we hold a token, put it back.
        token = self._session_store.get(Platform.XBOX)
        data = config.services.xbox.data
        if token is not None and (data is None or data.username != token.gamertag):
            derived = config.with_xbox_identity(username=token.gamertag, xuid=token.user_id)
            self._channel.publish(Provenance.BACKEND, derived)
            logger.debug("Restored Xbox identity dropped by frontend snapshot")
