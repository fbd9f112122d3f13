"""Shared application configuration model.

Hey future me - this is the shape that travels over the config sync channel and
the /api/config endpoints. Wire names are lowerCamelCase (the frontend expects
them), Python names stay snake_case; populate_by_name lets both in. `data` is
dropped from the JSON when it's None - always dump with by_alias=True and
exclude_none=True via to_wire().
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ConfigModel(BaseModel):
    """Base for all config nodes - camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NintendoData(ConfigModel):
    username: str | None = None


class NintendoService(ConfigModel):
    disclaimer_acknowledged: bool = False
    enabled: bool = False
    data: NintendoData | None = None


class PlaystationData(ConfigModel):
    username: str | None = None


class PlaystationService(ConfigModel):
    enabled: bool = False
    data: PlaystationData | None = None


class SteamData(ConfigModel):
    id: str
    key: str
    username: str


class SteamService(ConfigModel):
    enabled: bool = False
    data: SteamData | None = None


class TwitchData(ConfigModel):
    username: str


class TwitchService(ConfigModel):
    enabled: bool = False
    data: TwitchData | None = None


class XboxData(ConfigModel):
    """Display identity derived from the XSTS token."""

    username: str | None = None
    xuid: str | None = None


class XboxService(ConfigModel):
    enabled: bool = False
    data: XboxData | None = None


class Services(ConfigModel):
    nintendo: NintendoService = Field(default_factory=NintendoService)
    playstation: PlaystationService = Field(default_factory=PlaystationService)
    steam: SteamService = Field(default_factory=SteamService)
    twitch: TwitchService = Field(default_factory=TwitchService)
    xbox: XboxService = Field(default_factory=XboxService)

    def is_enabled(self, platform: str) -> bool:
        """Enabled flag for a platform by its config key."""
        service = getattr(self, platform, None)
        return bool(service is not None and service.enabled)


class Activity(ConfigModel):
    discord_display_presence: bool = False
    games_require_whitelisting: bool = False


class Games(ConfigModel):
    pass


class AppConfig(ConfigModel):
    """Root of the synchronized application state."""

    services: Services = Field(default_factory=Services)
    activity: Activity = Field(default_factory=Activity)
    games: Games = Field(default_factory=Games)

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting absent account data."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

    @classmethod
    def from_wire(cls, payload: dict[str, Any]) -> "AppConfig":
        return cls.model_validate(payload)

    def with_xbox_identity(self, username: str | None, xuid: str | None) -> "AppConfig":
        """Copy of this config with the Xbox display identity replaced."""
        derived = self.model_copy(deep=True)
        data = derived.services.xbox.data
        if data is None:
            derived.services.xbox.data = XboxData(username=username, xuid=xuid)
        else:
            data.username = username
            data.xuid = xuid
        return derived

    def without_xbox_identity(self) -> "AppConfig":
        """Copy of this config with the Xbox account data removed (signed out)."""
        derived = self.model_copy(deep=True)
        derived.services.xbox.data = None
        return derived
