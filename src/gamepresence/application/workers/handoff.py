"""One-shot rendezvous for handing a value from one task to exactly one other."""

import asyncio
import logging
from typing import Generic, TypeVar

from gamepresence.domain.exceptions import HostHandleUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OneShot(Generic[T]):
    """Deliver exactly one value to exactly one waiter.

    Hey future me - the scheduler is spawned BEFORE the host (the app context) is
    fully built. It parks in receive() until the lifespan calls send(). If startup
    fails instead, the lifespan calls close() and the waiter gets
    HostHandleUnavailableError rather than hanging forever.

    send() twice, or receive() twice, is a programming error -> RuntimeError.
    """

    def __init__(self) -> None:
        self._future: asyncio.Future[T] | None = None
        self._sent = False
        self._received = False

    def _get_future(self) -> "asyncio.Future[T]":
        # Created lazily so the rendezvous can be built outside a running loop
        if self._future is None:
            self._future = asyncio.get_running_loop().create_future()
        return self._future

    def send(self, value: T) -> None:
        if self._sent:
            raise RuntimeError("One-shot value already sent")
        future = self._get_future()
        if future.done():
            raise RuntimeError("One-shot rendezvous already closed")
        self._sent = True
        future.set_result(value)

    def close(self) -> None:
        """Drop the sending side without a value."""
        future = self._get_future()
        if not future.done():
            future.set_exception(HostHandleUnavailableError("Host handle sender was closed"))

    async def receive(self, timeout: float | None = None) -> T:
        """Wait for the value.

        Raises:
            HostHandleUnavailableError: If the sender closed or timeout elapsed
            RuntimeError: If called a second time
        """
        if self._received:
            raise RuntimeError("One-shot value already received")
        self._received = True
        future = self._get_future()
        try:
            return await asyncio.wait_for(asyncio.shield(future), timeout=timeout)
        except TimeoutError as e:
            raise HostHandleUnavailableError(
                f"Host handle not delivered within {timeout:g}s"
            ) from e
