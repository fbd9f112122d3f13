"""Xbox Live HTTP client: Microsoft OAuth PKCE + user/XSTS token hops."""

import base64
import hashlib
import logging
import secrets
from typing import Any, cast
from urllib.parse import urlencode

import httpx

from gamepresence.config.settings import XboxSettings
from gamepresence.domain.entities import (
    BearerToken,
    PlatformSessionToken,
    PlatformUserToken,
)
from gamepresence.domain.exceptions import ConfigurationError, TransportError

logger = logging.getLogger(__name__)

# Hey future me - the Xbox identity endpoints are picky about these JSON envelopes.
# Key names, casing and nesting must stay EXACTLY like this or the service answers 400.
USER_TOKEN_RELYING_PARTY = "http://auth.xboxlive.com"
XSTS_RELYING_PARTY = "http://xboxlive.com"
XBL_CONTRACT_HEADERS = {"x-xbl-contract-version": "1"}


class XboxAuthClient:
    """HTTP client for the three exchange hops."""

    def __init__(self, settings: XboxSettings) -> None:
        """
        Initialize Xbox auth client.

        Args:
            settings: Xbox configuration settings
        """
        self.settings = settings
        self._client: httpx.AsyncClient | None = None

    # Lazy on purpose - creating httpx.AsyncClient outside a running loop causes trouble
    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.http_timeout)
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # Yo future me, PKCE verifier = 32 random bytes, base64url, "=" padding stripped.
    # It's the secret half - never log it, never put it in a URL!
    @staticmethod
    def generate_code_verifier() -> str:
        """
        Generate a PKCE code verifier.

        Returns:
            Random code verifier string
        """
        return (
            base64.urlsafe_b64encode(secrets.token_bytes(32))
            .decode("utf-8")
            .rstrip("=")
        )

    @staticmethod
    def generate_code_challenge(code_verifier: str) -> str:
        """
        Generate a PKCE code challenge from verifier (S256).

        Args:
            code_verifier: Code verifier string

        Returns:
            SHA256 hash of code verifier as base64 URL-safe string
        """
        digest = hashlib.sha256(code_verifier.encode("utf-8")).digest()
        return base64.urlsafe_b64encode(digest).decode("utf-8").rstrip("=")

    @staticmethod
    def generate_csrf_token() -> str:
        return secrets.token_urlsafe(32)

    def get_authorization_url(
        self, state: str, code_challenge: str, reauthorize: bool = False
    ) -> str:
        """
        Build the Microsoft consumer authorization URL.

        Args:
            state: CSRF token echoed back on the redirect
            code_challenge: PKCE S256 challenge
            reauthorize: Ask the provider to show the account picker again

        Returns:
            Authorization URL

        Raises:
            ConfigurationError: If client_id or redirect_uri is not configured
        """
        if not self.settings.client_id or not self.settings.client_id.strip():
            raise ConfigurationError(
                "XBOX_CLIENT_ID is not configured. Set it in your environment or .env file."
            )
        if not self.settings.redirect_uri or not self.settings.redirect_uri.strip():
            raise ConfigurationError(
                "XBOX_REDIRECT_URI is not configured. Set it to the backend redirect route "
                "(e.g., http://localhost:3000/api/xbox/authorize/redirect)"
            )

        params = {
            "client_id": self.settings.client_id,
            "response_type": "code",
            "redirect_uri": self.settings.redirect_uri,
            "scope": " ".join(self.settings.scopes),
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
        }
        if reauthorize:
            params["prompt"] = "select_account"

        return f"{self.settings.authorize_url}?{urlencode(params)}"

    async def _post(self, hop: str, url: str, **kwargs: Any) -> dict[str, Any]:
        """POST and decode JSON, turning every httpx/JSON failure into TransportError."""
        client = await self._get_client()
        try:
            response = await client.post(url, **kwargs)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise TransportError(hop, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise TransportError(hop, str(e) or e.__class__.__name__) from e
        except ValueError as e:
            raise TransportError(hop, f"invalid JSON response: {e}") from e
        if not isinstance(payload, dict):
            raise TransportError(hop, "response is not a JSON object")
        return cast(dict[str, Any], payload)

    # Hop 1. Form-encoded, NOT JSON. redirect_uri must match the authorize call exactly.
    async def exchange_code(self, code: str, code_verifier: str) -> BearerToken:
        """
        Exchange authorization code + PKCE verifier for a bearer token.

        Raises:
            TransportError: If the request fails or the response is malformed
        """
        payload = await self._post(
            "OAuth token",
            self.settings.token_url,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.settings.redirect_uri,
                "client_id": self.settings.client_id,
                "code_verifier": code_verifier,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        access_token = payload.get("access_token")
        if not access_token:
            raise TransportError("OAuth token", "response has no access_token")
        return BearerToken(
            access_token=access_token,
            token_type=payload.get("token_type", "Bearer"),
            expires_in=payload.get("expires_in"),
        )

    # Hop 2. RpsTicket is "d=" + the Microsoft access token.
    async def get_user_token(self, bearer: BearerToken) -> PlatformUserToken:
        """
        Exchange the bearer token for an Xbox user token.

        Raises:
            TransportError: If the request fails or the response is malformed
            MissingIdentityClaimError: If the response has no xui claim
        """
        payload = await self._post(
            "Xbox user token",
            self.settings.user_auth_url,
            headers=XBL_CONTRACT_HEADERS,
            json={
                "RelyingParty": USER_TOKEN_RELYING_PARTY,
                "TokenType": "JWT",
                "Properties": {
                    "AuthMethod": "RPS",
                    "SiteName": "user.auth.xboxlive.com",
                    "RpsTicket": f"d={bearer.access_token}",
                },
            },
        )
        if "Token" not in payload:
            raise TransportError("Xbox user token", "response has no Token")
        return PlatformUserToken.from_response(payload)

    # Hop 3.
    async def get_xsts_token(self, user_token: PlatformUserToken) -> PlatformSessionToken:
        """
        Exchange the user token for an XSTS token.

        Raises:
            TransportError: If the request fails or the response is malformed
            MissingIdentityClaimError: If the response has no xui claim
        """
        payload = await self._post(
            "Xbox XSTS token",
            self.settings.xsts_auth_url,
            headers=XBL_CONTRACT_HEADERS,
            json={
                "RelyingParty": XSTS_RELYING_PARTY,
                "TokenType": "JWT",
                "Properties": {
                    "SandboxId": "RETAIL",
                    "UserTokens": [user_token.token],
                },
            },
        )
        if "Token" not in payload:
            raise TransportError("Xbox XSTS token", "response has no Token")
        return PlatformSessionToken.from_response(payload)
