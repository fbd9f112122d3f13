"""FastAPI application factory and server entry point."""

import uvicorn
from fastapi import FastAPI

from gamepresence import __version__
from gamepresence.api.exception_handlers import register_exception_handlers
from gamepresence.api.routers import api_router, health
from gamepresence.config import Settings, get_settings
from gamepresence.infrastructure.lifecycle import lifespan


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI app.

    Args:
        settings: Override settings (tests); defaults to get_settings() at startup
    """
    app = FastAPI(title="GamePresence", version=__version__, lifespan=lifespan)
    if settings is not None:
        app.state.settings = settings
    register_exception_handlers(app)
    app.include_router(api_router)
    app.include_router(health.router)
    return app


def run() -> None:
    """Console entry point: serve on the configured host/port."""
    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.api.host,
        port=settings.api.port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
