"""Domain entities."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from gamepresence.domain.entities.config import (
    Activity,
    AppConfig,
    Games,
    NintendoData,
    NintendoService,
    PlaystationData,
    PlaystationService,
    Services,
    SteamData,
    SteamService,
    TwitchData,
    TwitchService,
    XboxData,
    XboxService,
)
from gamepresence.domain.exceptions import MissingIdentityClaimError


class Platform(str, Enum):
    """Integrated platforms.

    Stored lowercase - the value doubles as the config key and the URL segment
    (/api/{platform}/authorize).
    """

    NINTENDO = "nintendo"
    PLAYSTATION = "playstation"
    STEAM = "steam"
    TWITCH = "twitch"
    XBOX = "xbox"


# Hey future me - one of these exists per authorization attempt and dies with it.
# pkce_verifier is the SECRET half: it only ever leaves the process inside the hop 1
# form body. Never log it, never put it in a URL.
@dataclass(frozen=True)
class AuthorizationRequest:
    """Everything issued for one authorization attempt."""

    authorize_url: str
    csrf_token: str
    pkce_challenge: str
    pkce_verifier: str = field(repr=False)


@dataclass(frozen=True)
class AuthorizationCode:
    """Code + echoed state parsed from the redirect query."""

    code: str = field(repr=False)
    state: str


@dataclass(frozen=True)
class BearerToken:
    """Hop 1 result - input to hop 2 only."""

    access_token: str = field(repr=False)
    token_type: str = "Bearer"
    expires_in: int | None = None


@dataclass(frozen=True)
class XuiClaim:
    """One Xbox user identity claim (DisplayClaims.xui[n]).

    gtg/xid are only present on XSTS tokens; user tokens carry just uhs.
    """

    uhs: str
    gtg: str | None = None
    xid: str | None = None

    @classmethod
    def first_from(cls, payload: dict[str, Any], hop: str) -> "XuiClaim":
        """Pick the first xui claim of a token response.

        Raises:
            MissingIdentityClaimError: If the claim list is missing or empty
        """
        display_claims = payload.get("DisplayClaims")
        claims = display_claims.get("xui") if isinstance(display_claims, dict) else None
        if not isinstance(claims, list) or not claims or not isinstance(claims[0], dict):
            raise MissingIdentityClaimError(hop)
        first = claims[0]
        return cls(uhs=first.get("uhs", ""), gtg=first.get("gtg"), xid=first.get("xid"))


@dataclass(frozen=True)
class PlatformUserToken:
    """Hop 2 result (Xbox user token)."""

    token: str = field(repr=False)
    claim: XuiClaim
    not_after: str | None = None

    @classmethod
    def from_response(cls, payload: dict[str, Any]) -> "PlatformUserToken":
        return cls(
            token=payload["Token"],
            claim=XuiClaim.first_from(payload, "user token"),
            not_after=payload.get("NotAfter"),
        )


@dataclass(frozen=True)
class PlatformSessionToken:
    """Hop 3 result (XSTS token) - what SessionStore keeps.

    Carries the display identity plus the opaque token for downstream calls.
    """

    token: str = field(repr=False)
    claim: XuiClaim
    not_after: str | None = None
    obtained_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_response(cls, payload: dict[str, Any]) -> "PlatformSessionToken":
        """Parse the hop 3 response.

        Raises:
            MissingIdentityClaimError: If the claim lacks the gamertag or xuid -
                the published identity would otherwise be blank next to a live token
        """
        claim = XuiClaim.first_from(payload, "XSTS token")
        for name in ("gtg", "xid"):
            if not getattr(claim, name):
                raise MissingIdentityClaimError("XSTS token", claim=name)
        return cls(
            token=payload["Token"],
            claim=claim,
            not_after=payload.get("NotAfter"),
        )

    @property
    def gamertag(self) -> str | None:
        return self.claim.gtg

    @property
    def user_hash(self) -> str:
        return self.claim.uhs

    @property
    def user_id(self) -> str | None:
        return self.claim.xid

    @property
    def authorization_header(self) -> str:
        """Value for the Authorization header of Xbox Live REST calls."""
        return f"XBL3.0 x={self.claim.uhs};{self.token}"


__all__ = [
    "Activity",
    "AppConfig",
    "AuthorizationCode",
    "AuthorizationRequest",
    "BearerToken",
    "Games",
    "NintendoData",
    "NintendoService",
    "Platform",
    "PlatformSessionToken",
    "PlatformUserToken",
    "PlaystationData",
    "PlaystationService",
    "Services",
    "SteamData",
    "SteamService",
    "TwitchData",
    "TwitchService",
    "XboxData",
    "XboxService",
    "XuiClaim",
]
