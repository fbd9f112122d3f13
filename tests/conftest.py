"""Shared fixtures for GamePresence tests."""

import pytest

from fakes import REDIRECT_URI
from gamepresence.application.services.config_sync import ConfigSyncChannel
from gamepresence.application.services.sessions import SessionStore
from gamepresence.config.settings import XboxSettings
from gamepresence.infrastructure.integrations.xbox_auth_client import XboxAuthClient


@pytest.fixture
def xbox_settings() -> XboxSettings:
    """Xbox settings with the stock endpoints and redirect."""
    return XboxSettings(redirect_uri=REDIRECT_URI, redirect_idle_timeout=5.0)


@pytest.fixture
def auth_client(xbox_settings: XboxSettings) -> XboxAuthClient:
    return XboxAuthClient(xbox_settings)


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def config_channel() -> ConfigSyncChannel:
    return ConfigSyncChannel()
