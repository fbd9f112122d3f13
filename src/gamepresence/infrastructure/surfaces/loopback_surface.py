"""Loopback browser surface - system browser + redirect captured by our own route.

Hey future me - how the pieces meet:

1. open(url) launches the user's browser on the Microsoft sign-in page and parks a
   future under a fresh handle id.
2. After sign-in Microsoft redirects the browser to XBOX_REDIRECT_URI, which is THIS
   backend (GET /api/xbox/authorize/redirect). That route calls deliver(url), which
   resolves the matching pending future.
3. await_redirect() returns the raw URL; the token exchange then closes the handle.

There's no window we can watch for "user closed it", so cancellation comes from
the frontend (POST /api/xbox/authorize/cancel -> cancel()) or from the idle timeout.
"""

import asyncio
import logging
import uuid
import webbrowser
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import urlparse

from gamepresence.domain.exceptions import (
    AuthorizationCancelledError,
    AuthorizationTimeoutError,
)
from gamepresence.domain.ports import IAuthBrowserSurface, SurfaceHandle

logger = logging.getLogger(__name__)


@dataclass
class _PendingRedirect:
    future: "asyncio.Future[str]"
    prefix: str | None = None


def redirect_matches(url: str, prefix: str) -> bool:
    """Does a captured URL belong to the registered redirect prefix?

    Host aliases (localhost vs 127.0.0.1) hit the same route, so the path alone
    is enough when the full prefix doesn't match.
    """
    if url.startswith(prefix):
        return True
    return urlparse(url).path.rstrip("/") == urlparse(prefix).path.rstrip("/")


class LoopbackBrowserSurface(IAuthBrowserSurface):
    """IAuthBrowserSurface backed by the system browser."""

    def __init__(
        self,
        idle_timeout: float | None = 600.0,
        opener: Callable[[str], object] | None = None,
        redirect_prefix: str | None = None,
    ) -> None:
        """
        Args:
            idle_timeout: Seconds to wait for the redirect (None = wait forever)
            opener: Callable that shows the URL (defaults to webbrowser.open)
            redirect_prefix: Prefix a redirect must match before await_redirect
                has registered its own (None = only match after await_redirect)
        """
        self._idle_timeout = idle_timeout
        self._opener = opener or webbrowser.open
        self._redirect_prefix = redirect_prefix
        self._pending: dict[str, _PendingRedirect] = {}

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def open(self, url: str) -> SurfaceHandle:
        handle = SurfaceHandle(id=uuid.uuid4().hex, url=url)
        self._pending[handle.id] = _PendingRedirect(
            future=asyncio.get_running_loop().create_future(),
            prefix=self._redirect_prefix,
        )
        # webbrowser.open can block on some desktops - keep it off the loop.
        # The caller never gets a handle if this fails, so nobody else will close it.
        try:
            await asyncio.to_thread(self._opener, url)
        except BaseException:
            pending = self._pending.pop(handle.id, None)
            if pending is not None:
                pending.future.cancel()
            raise
        logger.info(f"Opened authorization surface {handle.id[:8]}")
        return handle

    async def await_redirect(self, handle: SurfaceHandle, prefix: str) -> str:
        pending = self._pending.get(handle.id)
        if pending is None:
            raise AuthorizationCancelledError()
        pending.prefix = prefix
        try:
            return await asyncio.wait_for(
                asyncio.shield(pending.future), timeout=self._idle_timeout
            )
        except TimeoutError as e:
            raise AuthorizationTimeoutError(self._idle_timeout or 0.0) from e

    async def close(self, handle: SurfaceHandle) -> None:
        pending = self._pending.pop(handle.id, None)
        if pending is not None and not pending.future.done():
            pending.future.cancel()
        if pending is not None:
            logger.debug(f"Closed authorization surface {handle.id[:8]}")

    async def close_all(self) -> None:
        for handle_id in list(self._pending):
            await self.close(SurfaceHandle(id=handle_id, url=""))

    def deliver(self, url: str) -> bool:
        """Hand a captured redirect to the waiting surface.

        Returns:
            True if some pending surface accepted the URL
        """
        for handle_id, pending in self._pending.items():
            if pending.future.done():
                continue
            # No prefix yet means nobody is waiting on this surface - never guess
            if pending.prefix is None or not redirect_matches(url, pending.prefix):
                continue
            pending.future.set_result(url)
            logger.info(f"Captured authorization redirect for surface {handle_id[:8]}")
            return True
        logger.warning("Authorization redirect arrived but no sign-in is waiting")
        return False

    def cancel(self) -> int:
        """Treat every open surface as closed by the user.

        Returns:
            Number of waiting sign-ins that were cancelled
        """
        cancelled = 0
        for pending in self._pending.values():
            if not pending.future.done():
                pending.future.set_exception(AuthorizationCancelledError())
                cancelled += 1
        if cancelled:
            logger.info(f"Cancelled {cancelled} pending authorization(s)")
        return cancelled
