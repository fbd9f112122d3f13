"""Config sync channel - latest-value broadcast of the shared app state.

Hey future me - this is how backend and frontend agree on the config without
ping-ponging updates forever!

- ONE slot holding the latest StateSnapshot (not a queue - slow readers skip
  intermediate values and always land on the newest one).
- Every snapshot is tagged with WHO published it (Provenance).
- ANTI-ECHO: a side never reacts to its own snapshots, and when it reacts to the
  other side's snapshot by deriving a new config, it publishes with ITS OWN tag.
  watch(own) enforces the first half for you. Remove the tag and backend/frontend
  will keep re-publishing each other's writes in an infinite loop.

publish() never suspends. That matters: the token exchange calls it right after
the session store write without yielding to other tasks in between.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from gamepresence.domain.entities import AppConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Provenance(str, Enum):
    """Which side produced a snapshot."""

    BACKEND = "backend"
    FRONTEND = "frontend"


@dataclass(frozen=True)
class StateSnapshot(Generic[T]):
    """A published value plus its origin.

    version increases by one per publish; subscribers use it to tell whether
    they've already seen the current slot.
    """

    provenance: Provenance
    data: T
    version: int = 0


class ChannelClosed(Exception):
    """Raised to waiting subscribers when the channel shuts down."""

    pass


class Subscription:
    """Cursor over a ConfigSyncChannel.

    Iterating yields every snapshot published AFTER the subscription was created
    (coalesced to the latest one if several land before the reader wakes up).
    borrow() gives the current value at any time, even one published before the
    subscription existed.
    """

    def __init__(self, channel: "ConfigSyncChannel") -> None:
        self._channel = channel
        self._seen_version = channel.current().version

    def borrow(self) -> StateSnapshot[AppConfig]:
        """Latest snapshot without marking it as seen."""
        return self._channel.current()

    def has_changed(self) -> bool:
        return self._channel.current().version != self._seen_version

    async def changed(self) -> StateSnapshot[AppConfig]:
        """Wait for a snapshot newer than the last one seen and return it.

        Raises:
            ChannelClosed: If the channel is closed while waiting
        """
        while not self.has_changed():
            if self._channel.closed:
                raise ChannelClosed()
            # No await between the check and wait() - a publish can't slip in unseen
            await self._channel._wakeup.wait()
        snapshot = self._channel.current()
        self._seen_version = snapshot.version
        return snapshot

    def __aiter__(self) -> AsyncIterator[StateSnapshot[AppConfig]]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[StateSnapshot[AppConfig]]:
        while True:
            try:
                yield await self.changed()
            except ChannelClosed:
                return


class ConfigSyncChannel:
    """Single-slot, latest-wins channel of StateSnapshot[AppConfig]."""

    def __init__(self, initial: AppConfig | None = None) -> None:
        self._snapshot: StateSnapshot[AppConfig] = StateSnapshot(
            provenance=Provenance.BACKEND,
            data=initial if initial is not None else AppConfig(),
            version=0,
        )
        self._wakeup = asyncio.Event()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def current(self) -> StateSnapshot[AppConfig]:
        """Latest snapshot. Treat .data as read-only - derive copies to change it."""
        return self._snapshot

    def publish(self, provenance: Provenance, data: AppConfig) -> StateSnapshot[AppConfig]:
        """Replace the current value and wake every subscriber.

        The data is deep-copied so later mutation by the publisher can't leak
        into the published slot.
        """
        snapshot = StateSnapshot(
            provenance=provenance,
            data=data.model_copy(deep=True),
            version=self._snapshot.version + 1,
        )
        self._snapshot = snapshot
        self._wake_all()
        logger.debug(f"Config snapshot v{snapshot.version} published by {provenance.value}")
        return snapshot

    def subscribe(self) -> Subscription:
        return Subscription(self)

    async def watch(self, own: Provenance) -> AsyncIterator[StateSnapshot[AppConfig]]:
        """Yield only snapshots published by the OTHER side.

        This is the anti-echo filter: whoever watches with own=BACKEND never
        sees its own BACKEND publications.
        """
        async for snapshot in self.subscribe():
            if snapshot.provenance == own:
                continue
            yield snapshot

    def close(self) -> None:
        """Stop all subscriptions (shutdown)."""
        self._closed = True
        self._wake_all()

    def _wake_all(self) -> None:
        # Swap in a fresh event so waiters of the old one all wake exactly once
        wakeup, self._wakeup = self._wakeup, asyncio.Event()
        wakeup.set()
