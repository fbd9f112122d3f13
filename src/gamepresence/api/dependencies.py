"""FastAPI dependencies - everything comes from the AppContext on app.state."""

from typing import cast

from fastapi import Depends, Request

from gamepresence.application.context import AppContext
from gamepresence.application.services.config_sync import ConfigSyncChannel
from gamepresence.application.services.sessions import SessionStore
from gamepresence.application.services.token_exchange import TokenExchangeOrchestrator
from gamepresence.application.workers import ServiceScheduler
from gamepresence.domain.exceptions import ConfigurationError
from gamepresence.infrastructure.integrations.xbox_store_client import XboxStoreClient
from gamepresence.infrastructure.surfaces import LoopbackBrowserSurface


def get_app_context(request: Request) -> AppContext:
    """Get the application context built by the lifespan.

    Raises:
        ConfigurationError: If the app was started without the lifespan
    """
    if not hasattr(request.app.state, "context"):
        raise ConfigurationError("Application context not initialized")
    return cast(AppContext, request.app.state.context)


def get_scheduler(request: Request) -> ServiceScheduler | None:
    return cast(ServiceScheduler | None, getattr(request.app.state, "scheduler", None))


def get_config_channel(context: AppContext = Depends(get_app_context)) -> ConfigSyncChannel:
    return context.config_channel


def get_session_store(context: AppContext = Depends(get_app_context)) -> SessionStore:
    return context.session_store


def get_token_exchange(
    context: AppContext = Depends(get_app_context),
) -> TokenExchangeOrchestrator:
    return context.token_exchange


def get_surface(context: AppContext = Depends(get_app_context)) -> LoopbackBrowserSurface:
    return context.surface


def get_store_client(context: AppContext = Depends(get_app_context)) -> XboxStoreClient:
    return context.store_client
