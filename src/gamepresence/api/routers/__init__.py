"""API routers."""

from fastapi import APIRouter

from gamepresence.api.routers import auth, config, health, xbox

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)
api_router.include_router(config.router)
api_router.include_router(xbox.router)

__all__ = ["api_router", "health"]
