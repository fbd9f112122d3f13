"""Domain ports (interfaces) for dependency inversion."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from gamepresence.domain.entities import AppConfig, Platform


@dataclass(frozen=True)
class SurfaceHandle:
    """Opaque handle to one opened authorization surface."""

    id: str
    url: str


class IAuthBrowserSurface(ABC):
    """Something that can show a sign-in page and catch the redirect.

    Hey future me - the token exchange never knows HOW the page is shown (system
    browser, embedded webview, test fake). It only needs these three calls:

    - open(url): show the page, return a handle
    - await_redirect(handle, prefix): suspend until a navigation starting with
      prefix happens; every other navigation goes through untouched. Raises
      AuthorizationCancelledError if the user closes the surface and
      AuthorizationTimeoutError on idle timeout.
    - close(handle): release the surface. Must be safe to call twice.
    """

    @abstractmethod
    async def open(self, url: str) -> SurfaceHandle:
        """Present the URL to the user."""
        pass

    @abstractmethod
    async def await_redirect(self, handle: SurfaceHandle, prefix: str) -> str:
        """Wait for the redirect matching prefix and return the raw URL."""
        pass

    @abstractmethod
    async def close(self, handle: SurfaceHandle) -> None:
        """Release the surface."""
        pass


class IPlatformPoller(ABC):
    """Tick body for one platform's scheduler task.

    Only called while the platform is enabled in the current config snapshot.
    """

    @abstractmethod
    async def poll(self, platform: Platform, config: AppConfig) -> None:
        """Do one unit of platform work."""
        pass


__all__ = [
    "IAuthBrowserSurface",
    "IPlatformPoller",
    "SurfaceHandle",
]
