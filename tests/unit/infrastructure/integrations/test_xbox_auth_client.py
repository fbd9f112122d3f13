"""Tests for XboxAuthClient."""

import base64
import hashlib
import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from pytest_httpx import HTTPXMock

from fakes import BEARER_RESPONSE, REDIRECT_URI, USER_TOKEN_RESPONSE, XSTS_TOKEN_RESPONSE
from gamepresence.config.settings import XboxSettings
from gamepresence.domain.entities import BearerToken, PlatformUserToken, XuiClaim
from gamepresence.domain.exceptions import (
    ConfigurationError,
    MissingIdentityClaimError,
    TransportError,
)
from gamepresence.infrastructure.integrations.xbox_auth_client import XboxAuthClient


class TestPkce:
    """Test PKCE and CSRF token generation."""

    def test_challenge_is_s256_of_verifier(self):
        """Test that challenge == base64url(sha256(verifier)) without padding."""
        verifier = XboxAuthClient.generate_code_verifier()
        expected = (
            base64.urlsafe_b64encode(hashlib.sha256(verifier.encode()).digest())
            .decode()
            .rstrip("=")
        )
        assert XboxAuthClient.generate_code_challenge(verifier) == expected

    def test_verifier_shape(self):
        """Test that 32 random bytes encode to 43 unpadded url-safe chars."""
        verifier = XboxAuthClient.generate_code_verifier()
        assert len(verifier) == 43
        assert "=" not in verifier
        assert "+" not in verifier and "/" not in verifier

    def test_known_vector(self):
        """RFC 7636 appendix B."""
        verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
        assert (
            XboxAuthClient.generate_code_challenge(verifier)
            == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"
        )

    def test_tokens_are_fresh(self):
        assert XboxAuthClient.generate_code_verifier() != XboxAuthClient.generate_code_verifier()
        assert XboxAuthClient.generate_csrf_token() != XboxAuthClient.generate_csrf_token()


class TestAuthorizationUrl:
    """Test the authorize URL."""

    def test_parameters(self, auth_client: XboxAuthClient):
        url = auth_client.get_authorization_url(state="csrf-1", code_challenge="chal-1")
        parsed = urlparse(url)
        params = {k: v[0] for k, v in parse_qs(parsed.query).items()}

        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == (
            "https://login.microsoftonline.com/consumers/oauth2/v2.0/authorize"
        )
        assert params == {
            "client_id": "6d97ccd0-5a71-48c5-9bc3-a203a183da22",
            "response_type": "code",
            "redirect_uri": REDIRECT_URI,
            "scope": "xboxlive.signin xboxlive.offline_access",
            "state": "csrf-1",
            "code_challenge": "chal-1",
            "code_challenge_method": "S256",
        }

    def test_reauthorize_shows_account_picker(self, auth_client: XboxAuthClient):
        url = auth_client.get_authorization_url(state="s", code_challenge="c", reauthorize=True)
        assert parse_qs(urlparse(url).query)["prompt"] == ["select_account"]

    def test_missing_client_id(self):
        client = XboxAuthClient(XboxSettings(client_id=" "))
        with pytest.raises(ConfigurationError, match="XBOX_CLIENT_ID"):
            client.get_authorization_url(state="s", code_challenge="c")

    def test_missing_redirect_uri(self):
        client = XboxAuthClient(XboxSettings(redirect_uri=""))
        with pytest.raises(ConfigurationError, match="XBOX_REDIRECT_URI"):
            client.get_authorization_url(state="s", code_challenge="c")


class TestExchangeHops:
    """Test the three token hops against mocked endpoints."""

    async def test_exchange_code(
        self, auth_client: XboxAuthClient, xbox_settings: XboxSettings, httpx_mock: HTTPXMock
    ):
        """Test hop 1 sends a form body with the verifier."""
        httpx_mock.add_response(url=xbox_settings.token_url, method="POST", json=BEARER_RESPONSE)

        bearer = await auth_client.exchange_code("auth-code-1", "verifier-1")

        assert bearer == BearerToken(access_token="ms-access-token", token_type="bearer", expires_in=3600)
        request = httpx_mock.get_request()
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        assert form == {
            "grant_type": "authorization_code",
            "code": "auth-code-1",
            "redirect_uri": REDIRECT_URI,
            "client_id": xbox_settings.client_id,
            "code_verifier": "verifier-1",
        }

    async def test_exchange_code_without_access_token(
        self, auth_client: XboxAuthClient, xbox_settings: XboxSettings, httpx_mock: HTTPXMock
    ):
        httpx_mock.add_response(url=xbox_settings.token_url, json={"token_type": "bearer"})
        with pytest.raises(TransportError, match="no access_token"):
            await auth_client.exchange_code("c", "v")

    async def test_user_token_request_envelope(
        self, auth_client: XboxAuthClient, xbox_settings: XboxSettings, httpx_mock: HTTPXMock
    ):
        """Test hop 2 sends the exact envelope the identity service expects."""
        httpx_mock.add_response(url=xbox_settings.user_auth_url, method="POST", json=USER_TOKEN_RESPONSE)

        user_token = await auth_client.get_user_token(BearerToken(access_token="ms-access-token"))

        assert user_token.token == "user-token-abc"
        request = httpx_mock.get_request()
        assert request.headers["x-xbl-contract-version"] == "1"
        assert json.loads(request.content) == {
            "RelyingParty": "http://auth.xboxlive.com",
            "TokenType": "JWT",
            "Properties": {
                "AuthMethod": "RPS",
                "SiteName": "user.auth.xboxlive.com",
                "RpsTicket": "d=ms-access-token",
            },
        }

    async def test_xsts_request_envelope(
        self, auth_client: XboxAuthClient, xbox_settings: XboxSettings, httpx_mock: HTTPXMock
    ):
        """Test hop 3 sends the user token and returns the identity."""
        httpx_mock.add_response(url=xbox_settings.xsts_auth_url, method="POST", json=XSTS_TOKEN_RESPONSE)
        user_token = PlatformUserToken(token="user-token-abc", claim=XuiClaim(uhs="1"))

        session = await auth_client.get_xsts_token(user_token)

        assert session.gamertag == "MasterChief117"
        request = httpx_mock.get_request()
        assert request.headers["x-xbl-contract-version"] == "1"
        assert json.loads(request.content) == {
            "RelyingParty": "http://xboxlive.com",
            "TokenType": "JWT",
            "Properties": {"SandboxId": "RETAIL", "UserTokens": ["user-token-abc"]},
        }

    async def test_xsts_without_claims(
        self, auth_client: XboxAuthClient, xbox_settings: XboxSettings, httpx_mock: HTTPXMock
    ):
        httpx_mock.add_response(
            url=xbox_settings.xsts_auth_url,
            json={"Token": "t", "DisplayClaims": {"xui": []}},
        )
        with pytest.raises(MissingIdentityClaimError):
            await auth_client.get_xsts_token(PlatformUserToken(token="u", claim=XuiClaim(uhs="1")))


class TestTransportErrors:
    """Test that every network failure becomes a TransportError naming the hop."""

    async def test_http_status_error(
        self, auth_client: XboxAuthClient, xbox_settings: XboxSettings, httpx_mock: HTTPXMock
    ):
        httpx_mock.add_response(url=xbox_settings.token_url, status_code=400, json={"error": "invalid_grant"})
        with pytest.raises(TransportError) as exc_info:
            await auth_client.exchange_code("c", "v")
        assert exc_info.value.hop == "OAuth token"
        assert exc_info.value.reason == "HTTP 400"

    async def test_connection_error(
        self, auth_client: XboxAuthClient, xbox_settings: XboxSettings, httpx_mock: HTTPXMock
    ):
        httpx_mock.add_exception(httpx.ConnectError("connection refused"), url=xbox_settings.user_auth_url)
        with pytest.raises(TransportError) as exc_info:
            await auth_client.get_user_token(BearerToken(access_token="a"))
        assert exc_info.value.hop == "Xbox user token"
        assert "connection refused" in exc_info.value.message

    async def test_invalid_json(
        self, auth_client: XboxAuthClient, xbox_settings: XboxSettings, httpx_mock: HTTPXMock
    ):
        httpx_mock.add_response(url=xbox_settings.xsts_auth_url, text="<html>oops</html>")
        with pytest.raises(TransportError, match="invalid JSON"):
            await auth_client.get_xsts_token(PlatformUserToken(token="u", claim=XuiClaim(uhs="1")))

    async def test_missing_token_field(
        self, auth_client: XboxAuthClient, xbox_settings: XboxSettings, httpx_mock: HTTPXMock
    ):
        httpx_mock.add_response(url=xbox_settings.user_auth_url, json={"DisplayClaims": {"xui": [{"uhs": "1"}]}})
        with pytest.raises(TransportError, match="no Token"):
            await auth_client.get_user_token(BearerToken(access_token="a"))

    @pytest.mark.parametrize("body", [["unexpected"], "just a string", 42])
    async def test_non_object_body(
        self, auth_client: XboxAuthClient, xbox_settings: XboxSettings, httpx_mock: HTTPXMock, body
    ):
        """Test that valid JSON that isn't an object is reported, not indexed into."""
        httpx_mock.add_response(url=xbox_settings.token_url, json=body)
        with pytest.raises(TransportError, match="not a JSON object") as exc_info:
            await auth_client.exchange_code("c", "v")
        assert exc_info.value.hop == "OAuth token"
