"""Application settings using Pydantic Settings.

Hey future me - every tunable lives here, grouped per concern. Each group reads
its own env prefix (XBOX_, SCHEDULER_, LOG_, API_) so a .env file can override
a single value without touching the rest. Call get_settings() instead of
constructing Settings() all over the place - it's cached.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class XboxSettings(BaseSettings):
    """Microsoft consumer OAuth + Xbox Live identity endpoints."""

    model_config = SettingsConfigDict(
        env_prefix="XBOX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    client_id: str = Field(
        default="6d97ccd0-5a71-48c5-9bc3-a203a183da22",
        description="Public client id registered with Microsoft (no secret, PKCE only)",
    )
    redirect_uri: str = Field(
        default="http://localhost:3000/api/xbox/authorize/redirect",
        description="Redirect prefix the browser surface intercepts",
    )
    scopes: list[str] = Field(
        default_factory=lambda: ["xboxlive.signin", "xboxlive.offline_access"],
        description="OAuth scopes requested on every authorization",
    )
    authorize_url: str = "https://login.microsoftonline.com/consumers/oauth2/v2.0/authorize"
    token_url: str = "https://login.microsoftonline.com/consumers/oauth2/v2.0/token"  # nosec B105 - public endpoint URL
    user_auth_url: str = "https://user.auth.xboxlive.com/user/authenticate"
    xsts_auth_url: str = "https://xsts.auth.xboxlive.com/xsts/authorize"
    autosuggest_url: str = "https://www.microsoft.com/msstoreapiprod/api/autosuggest"
    http_timeout: float = Field(default=30.0, description="Seconds per HTTP hop")
    redirect_idle_timeout: float | None = Field(
        default=600.0,
        description="Seconds to wait for the user to finish signing in (None = no limit)",
    )


class SchedulerSettings(BaseSettings):
    """Per-platform poller intervals.

    None means the platform never ticks - its task only waits for the exit
    signal. That's the shipped default until presence publishing exists.
    """

    model_config = SettingsConfigDict(
        env_prefix="SCHEDULER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    nintendo_tick_seconds: float | None = None
    playstation_tick_seconds: float | None = None
    steam_tick_seconds: float | None = None
    xbox_tick_seconds: float | None = None
    handoff_timeout: float = Field(
        default=30.0, description="Seconds to wait for the host handle at startup"
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: str = "INFO"
    json_format: bool = False


class ApiSettings(BaseSettings):
    """HTTP server configuration."""

    model_config = SettingsConfigDict(
        env_prefix="API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = 3000


class Settings(BaseSettings):
    """Top-level settings container."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "gamepresence"
    xbox: XboxSettings = Field(default_factory=XboxSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    log: LogSettings = Field(default_factory=LogSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
