"""Process-wide application context.

Built once by the lifespan and handed by reference to every task and request
handler (request.app.state.context). There are no module-level singletons for
shared state - if something needs the session store, it gets it from here.
"""

from dataclasses import dataclass

from gamepresence.application.services.config_sync import ConfigSyncChannel
from gamepresence.application.services.sessions import SessionStore
from gamepresence.application.services.token_exchange import TokenExchangeOrchestrator
from gamepresence.config import Settings
from gamepresence.infrastructure.integrations.xbox_auth_client import XboxAuthClient
from gamepresence.infrastructure.integrations.xbox_store_client import XboxStoreClient
from gamepresence.infrastructure.surfaces import LoopbackBrowserSurface


@dataclass
class AppContext:
    """Shared handles for one running backend."""

    settings: Settings
    session_store: SessionStore
    config_channel: ConfigSyncChannel
    surface: LoopbackBrowserSurface
    auth_client: XboxAuthClient
    store_client: XboxStoreClient
    token_exchange: TokenExchangeOrchestrator

    @classmethod
    def build(cls, settings: Settings) -> "AppContext":
        session_store = SessionStore()
        config_channel = ConfigSyncChannel()
        surface = LoopbackBrowserSurface(
            idle_timeout=settings.xbox.redirect_idle_timeout,
            redirect_prefix=settings.xbox.redirect_uri,
        )
        auth_client = XboxAuthClient(settings.xbox)
        token_exchange = TokenExchangeOrchestrator(
            client=auth_client,
            surface=surface,
            session_store=session_store,
            config_channel=config_channel,
        )
        return cls(
            settings=settings,
            session_store=session_store,
            config_channel=config_channel,
            surface=surface,
            auth_client=auth_client,
            store_client=XboxStoreClient(settings.xbox),
            token_exchange=token_exchange,
        )

    async def aclose(self) -> None:
        """Release network clients and wake config subscribers."""
        self.config_channel.close()
        await self.surface.close_all()
        await self.auth_client.close()
        await self.store_client.close()
