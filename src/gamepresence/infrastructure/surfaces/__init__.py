"""Authorization surfaces (ways to show a sign-in page and catch its redirect)."""

from gamepresence.infrastructure.surfaces.loopback_surface import (
    LoopbackBrowserSurface,
    redirect_matches,
)

__all__ = ["LoopbackBrowserSurface", "redirect_matches"]
