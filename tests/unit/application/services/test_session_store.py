"""Tests for SessionStore."""

import pytest

from fakes import XSTS_TOKEN_RESPONSE
from gamepresence.application.services.sessions import SessionStore
from gamepresence.domain.entities import Platform, PlatformSessionToken, XuiClaim


def _token(gamertag: str) -> PlatformSessionToken:
    return PlatformSessionToken(token=f"tok-{gamertag}", claim=XuiClaim(uhs="1", gtg=gamertag, xid="2"))


class TestSessionStore:
    """Test token storage."""

    async def test_empty_store(self, session_store: SessionStore):
        """Test that nothing is authenticated initially."""
        assert session_store.get(Platform.XBOX) is None
        assert session_store.is_authenticated(Platform.XBOX) is False

    async def test_set_overwrites(self, session_store: SessionStore):
        """Test that the latest token wins."""
        await session_store.set(Platform.XBOX, _token("First"))
        await session_store.set(Platform.XBOX, _token("Second"))
        assert session_store.get(Platform.XBOX).gamertag == "Second"
        assert session_store.is_authenticated(Platform.XBOX) is True

    async def test_platforms_are_independent(self, session_store: SessionStore):
        await session_store.set(Platform.XBOX, PlatformSessionToken.from_response(XSTS_TOKEN_RESPONSE))
        assert session_store.get(Platform.STEAM) is None

    async def test_then_sees_new_token(self, session_store: SessionStore):
        """Test that the callback runs after the write."""
        seen = []
        await session_store.set(
            Platform.XBOX, _token("Chief"), then=lambda: seen.append(session_store.get(Platform.XBOX))
        )
        assert seen[0].gamertag == "Chief"

    async def test_failing_then_restores_previous_token(self, session_store: SessionStore):
        """Test that the write is rolled back when the callback fails."""
        await session_store.set(Platform.XBOX, _token("Old"))

        def boom() -> None:
            raise RuntimeError("publish failed")

        with pytest.raises(RuntimeError):
            await session_store.set(Platform.XBOX, _token("New"), then=boom)

        assert session_store.get(Platform.XBOX).gamertag == "Old"

    async def test_failing_then_on_empty_store_leaves_it_empty(self, session_store: SessionStore):
        def boom() -> None:
            raise RuntimeError("publish failed")

        with pytest.raises(RuntimeError):
            await session_store.set(Platform.XBOX, _token("New"), then=boom)

        assert session_store.is_authenticated(Platform.XBOX) is False

    async def test_clear(self, session_store: SessionStore):
        """Test sign out."""
        await session_store.set(Platform.XBOX, _token("Chief"))
        await session_store.clear(Platform.XBOX)
        await session_store.clear(Platform.XBOX)
        assert session_store.get(Platform.XBOX) is None

    async def test_clear_reports_whether_a_token_was_held(self, session_store: SessionStore):
        await session_store.set(Platform.XBOX, _token("Chief"))
        assert await session_store.clear(Platform.XBOX) is True
        assert await session_store.clear(Platform.XBOX) is False

    async def test_clear_then_sees_empty_store(self, session_store: SessionStore):
        """Test that the callback runs after the removal."""
        await session_store.set(Platform.XBOX, _token("Chief"))
        seen = []
        await session_store.clear(
            Platform.XBOX, then=lambda: seen.append(session_store.is_authenticated(Platform.XBOX))
        )
        assert seen == [False]

    async def test_failing_clear_then_restores_token(self, session_store: SessionStore):
        """Test that a sign-out whose callback fails keeps the session."""
        await session_store.set(Platform.XBOX, _token("Chief"))

        def boom() -> None:
            raise RuntimeError("publish failed")

        with pytest.raises(RuntimeError):
            await session_store.clear(Platform.XBOX, then=boom)

        assert session_store.get(Platform.XBOX).gamertag == "Chief"
