"""In-memory store for the current session token of each platform."""

import asyncio
import logging
from collections.abc import Callable

from gamepresence.domain.entities import Platform, PlatformSessionToken

logger = logging.getLogger(__name__)


class SessionStore:
    """Latest session token per platform.

    Writers serialize on an asyncio.Lock; readers never wait. Everything runs on
    one event loop, so a reader sees either the old or the new token, never a
    half-written one. No history - set() overwrites.
    """

    def __init__(self) -> None:
        self._tokens: dict[Platform, PlatformSessionToken] = {}
        self._write_lock = asyncio.Lock()

    def get(self, platform: Platform) -> PlatformSessionToken | None:
        """Current token, or None when not authenticated."""
        return self._tokens.get(platform)

    # Hey future me - `then` runs synchronously under the write lock right after the
    # token lands, with no await in between. The token exchange uses it to publish the
    # matching config snapshot, so nobody can see the new gamertag without the token
    # (or the token without the gamertag). Keep `then` cheap and non-blocking!
    async def set(
        self,
        platform: Platform,
        token: PlatformSessionToken,
        *,
        then: Callable[[], object] | None = None,
    ) -> None:
        """Replace the token for a platform.

        Args:
            platform: Platform the token belongs to
            token: New session token
            then: Optional callback run atomically with the write
        """
        async with self._write_lock:
            previous = self._tokens.get(platform)
            self._tokens[platform] = token
            if then is not None:
                try:
                    then()
                except Exception:
                    # All-or-nothing: put the old token back before propagating
                    if previous is None:
                        del self._tokens[platform]
                    else:
                        self._tokens[platform] = previous
                    raise
        logger.info(f"Stored {platform.value} session token")

    async def clear(
        self,
        platform: Platform,
        *,
        then: Callable[[], object] | None = None,
    ) -> bool:
        """Forget the token for a platform (sign out).

        Args:
            platform: Platform to sign out of
            then: Optional callback run atomically with the removal (same rules as set())

        Returns:
            True if a token was removed
        """
        async with self._write_lock:
            removed = self._tokens.pop(platform, None)
            if then is not None:
                try:
                    then()
                except Exception:
                    if removed is not None:
                        self._tokens[platform] = removed
                    raise
        if removed is not None:
            logger.info(f"Cleared {platform.value} session token")
        return removed is not None

    def is_authenticated(self, platform: Platform) -> bool:
        return platform in self._tokens
