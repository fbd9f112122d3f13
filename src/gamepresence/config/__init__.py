"""Configuration module for GamePresence."""

from .settings import (
    ApiSettings,
    LogSettings,
    SchedulerSettings,
    Settings,
    XboxSettings,
    get_settings,
)

__all__ = [
    "ApiSettings",
    "LogSettings",
    "SchedulerSettings",
    "Settings",
    "XboxSettings",
    "get_settings",
]
