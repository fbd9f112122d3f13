"""Xbox token exchange - the three-hop sign-in flow.

Hey future me - this service owns the WHOLE Xbox sign-in, start to finish:

1. create_authorization_request() -> fresh PKCE pair + CSRF token + authorize URL
2. Browser surface shows the URL, we wait for ONE redirect to our redirect prefix,
   then close the surface (success OR failure, see _capture_authorization_code)
3. parse_redirect() -> {code, state}; state must equal the CSRF token EXACTLY or
   we abort. That's an attack/bug signal, NOT something to retry.
4. Hop 1: code + verifier -> Microsoft bearer token
5. Hop 2: bearer -> Xbox user token (first xui claim required)
6. Hop 3: user token -> XSTS token (gamertag, uhs, xid)
7. SessionStore write + config publish, atomically

Nothing is written until step 7, so any failure before it leaves the previous
session exactly as it was. Re-running the flow is always safe.
"""

import asyncio
import logging
import secrets
from urllib.parse import parse_qs, urlparse

from gamepresence.application.services.config_sync import ConfigSyncChannel, Provenance
from gamepresence.application.services.sessions import SessionStore
from gamepresence.domain.entities import (
    AuthorizationCode,
    AuthorizationRequest,
    Platform,
    PlatformSessionToken,
)
from gamepresence.domain.exceptions import CsrfMismatchError, RedirectCaptureError
from gamepresence.domain.ports import IAuthBrowserSurface
from gamepresence.infrastructure.integrations.xbox_auth_client import XboxAuthClient
from gamepresence.infrastructure.observability.logging import set_correlation_id

logger = logging.getLogger(__name__)


def parse_redirect(redirect_url: str, expected_state: str) -> AuthorizationCode:
    """Extract {code, state} from the captured redirect and verify the state echo.

    Args:
        redirect_url: Full URL the provider redirected to
        expected_state: CSRF token issued for this attempt

    Returns:
        AuthorizationCode

    Raises:
        CsrfMismatchError: If the echoed state differs from the issued token
        RedirectCaptureError: If the redirect carries no code (or an OAuth error)
    """
    query = parse_qs(urlparse(redirect_url).query)
    state = query.get("state", [None])[0]
    code = query.get("code", [None])[0]
    error = query.get("error", [None])[0]

    if state is None:
        raise RedirectCaptureError("Authorization redirect has no state parameter")
    if not secrets.compare_digest(state, expected_state):
        raise CsrfMismatchError(state=state, expected=expected_state)
    if error is not None:
        description = query.get("error_description", [""])[0]
        raise RedirectCaptureError(
            f"Provider rejected authorization: {error}"
            + (f" ({description})" if description else "")
        )
    if not code:
        raise RedirectCaptureError("Authorization redirect has no code parameter")

    return AuthorizationCode(code=code, state=state)


class TokenExchangeOrchestrator:
    """Runs the Xbox sign-in and publishes the result."""

    def __init__(
        self,
        client: XboxAuthClient,
        surface: IAuthBrowserSurface,
        session_store: SessionStore,
        config_channel: ConfigSyncChannel,
    ) -> None:
        self._client = client
        self._surface = surface
        self._session_store = session_store
        self._config_channel = config_channel
        # One sign-in at a time - a second click waits instead of opening a second window
        self._flow_lock = asyncio.Lock()

    def create_authorization_request(
        self, force_reauthorize: bool = False
    ) -> AuthorizationRequest:
        """Issue a fresh PKCE pair and CSRF token and build the authorize URL."""
        verifier = XboxAuthClient.generate_code_verifier()
        challenge = XboxAuthClient.generate_code_challenge(verifier)
        csrf_token = XboxAuthClient.generate_csrf_token()
        url = self._client.get_authorization_url(
            state=csrf_token,
            code_challenge=challenge,
            reauthorize=force_reauthorize,
        )
        return AuthorizationRequest(
            authorize_url=url,
            csrf_token=csrf_token,
            pkce_challenge=challenge,
            pkce_verifier=verifier,
        )

    async def authenticate(self, force_reauthorize: bool = False) -> PlatformSessionToken:
        """Run the full flow.

        Args:
            force_reauthorize: Make the provider show the account picker again

        Returns:
            The new XSTS session token (already stored and published)

        Raises:
            AuthError: Any protocol, transport or coordination failure
            ConfigurationError: If client id / redirect URI are missing
        """
        async with self._flow_lock:
            correlation_id = set_correlation_id()
            logger.info(
                f"Starting Xbox authorization (reauthorize={force_reauthorize}, "
                f"correlation_id={correlation_id})"
            )

            request = self.create_authorization_request(force_reauthorize)
            code = await self._capture_authorization_code(request)

            bearer = await self._client.exchange_code(code.code, request.pkce_verifier)
            logger.debug("Hop 1 done: bearer token received")

            user_token = await self._client.get_user_token(bearer)
            logger.debug("Hop 2 done: Xbox user token received")

            session_token = await self._client.get_xsts_token(user_token)
            logger.debug("Hop 3 done: XSTS token received")

            await self._commit(session_token)
            logger.info(f"Xbox authorization complete for {session_token.gamertag}")
            return session_token

    async def sign_out(self) -> bool:
        """Drop the Xbox session and its published identity together.

        Returns:
            True if a session was held
        """
        async with self._flow_lock:

            def publish_cleared() -> None:
                current = self._config_channel.current().data
                if current.services.xbox.data is not None:
                    self._config_channel.publish(
                        Provenance.BACKEND, current.without_xbox_identity()
                    )

            removed = await self._session_store.clear(Platform.XBOX, then=publish_cleared)
            logger.info("Xbox signed out" if removed else "Xbox sign-out: no session held")
            return removed

    async def _capture_authorization_code(
        self, request: AuthorizationRequest
    ) -> AuthorizationCode:
        """Show the authorize URL and wait for the redirect.

        The surface is closed in every case - success, failure, cancellation.
        """
        handle = await self._surface.open(request.authorize_url)
        try:
            redirect_url = await self._surface.await_redirect(
                handle, self._client.settings.redirect_uri
            )
        finally:
            await self._surface.close(handle)

        return parse_redirect(redirect_url, request.csrf_token)

    async def _commit(self, session_token: PlatformSessionToken) -> None:
        """Store the token and publish the derived identity in one step."""

        def publish_identity() -> None:
            # Derive from the CURRENT slot so concurrent frontend edits aren't lost
            derived = self._config_channel.current().data.with_xbox_identity(
                username=session_token.gamertag,
                xuid=session_token.user_id,
            )
            self._config_channel.publish(Provenance.BACKEND, derived)

        await self._session_store.set(Platform.XBOX, session_token, then=publish_identity)
