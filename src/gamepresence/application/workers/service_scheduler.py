"""Service scheduler - one polling task per integrated platform.

Hey future me - this is the background heartbeat of the app:

- Every platform gets its own asyncio task running the same loop:
  race "tick interval elapsed" against "exit requested". Exit ALWAYS wins.
- On a tick the task reads the enabled flag from the LATEST config snapshot.
  Disabled -> nothing happens. Enabled -> the platform poller runs.
- The exit signal is ONE asyncio.Event shared by all tasks, so a single
  exit() stops every poller at its next tick boundary.
- finish() joins EVERY task even if one of them failed (no orphans), then
  raises the first failure wrapped with the platform that produced it.

The shipped pollers are IdlePoller no-ops and the default intervals are None
("never tick"): presence publishing hooks in here via IPlatformPoller.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from gamepresence.application.services.config_sync import ConfigSyncChannel
from gamepresence.application.workers.handoff import OneShot
from gamepresence.config import SchedulerSettings
from gamepresence.domain.entities import AppConfig, Platform
from gamepresence.domain.exceptions import PlatformTaskError, SchedulerError, TaskJoinError
from gamepresence.domain.ports import IPlatformPoller

logger = logging.getLogger(__name__)


class PlatformTaskState(Enum):
    """Poller lifecycle states."""

    REGISTERED = "registered"
    RUNNING = "running"
    STOPPED = "stopped"
    FAILED = "failed"


class IdlePoller(IPlatformPoller):
    """Placeholder tick body - logs and does nothing else."""

    async def poll(self, platform: Platform, config: AppConfig) -> None:
        logger.debug(f"{platform.value} tick (idle)")


@dataclass
class PlatformTaskInfo:
    """Bookkeeping for one platform task."""

    platform: Platform
    interval: float | None
    poller: IPlatformPoller
    state: PlatformTaskState = PlatformTaskState.REGISTERED
    ticks: int = 0
    polls: int = 0
    started_at: datetime | None = None
    stopped_at: datetime | None = None
    error: str | None = None
    task: asyncio.Task[None] | None = None


def intervals_from_settings(settings: SchedulerSettings) -> dict[Platform, float | None]:
    return {
        Platform.NINTENDO: settings.nintendo_tick_seconds,
        Platform.PLAYSTATION: settings.playstation_tick_seconds,
        Platform.STEAM: settings.steam_tick_seconds,
        Platform.XBOX: settings.xbox_tick_seconds,
    }


class ServiceScheduler:
    """Runs and tears down the per-platform pollers."""

    def __init__(
        self,
        config_channel: ConfigSyncChannel,
        intervals: dict[Platform, float | None],
        pollers: dict[Platform, IPlatformPoller] | None = None,
        exit_signal: asyncio.Event | None = None,
    ) -> None:
        """
        Args:
            config_channel: Source of the enabled flags (read every tick)
            intervals: Tick interval per platform in seconds; None = never tick
            pollers: Tick body per platform (IdlePoller when missing)
            exit_signal: Shared exit broadcast (created when not given)
        """
        self._config_channel = config_channel
        self._exit = exit_signal if exit_signal is not None else asyncio.Event()
        pollers = pollers or {}
        self._platforms: dict[Platform, PlatformTaskInfo] = {
            platform: PlatformTaskInfo(
                platform=platform,
                interval=interval,
                poller=pollers.get(platform) or IdlePoller(),
            )
            for platform, interval in intervals.items()
        }
        self._started = False

    # Mirrors the startup rendezvous: the scheduler task exists from the very
    # beginning, but only builds itself once the host context has been handed over.
    @classmethod
    def spawn(
        cls,
        handoff: OneShot[Any],
        intervals: dict[Platform, float | None],
        pollers: dict[Platform, IPlatformPoller] | None = None,
        handoff_timeout: float | None = None,
    ) -> "asyncio.Task[ServiceScheduler]":
        """Start a task that waits for the host context, then starts the pollers.

        The host value must expose a `config_channel` attribute (AppContext does).

        Raises (from the task):
            HostHandleUnavailableError: If the handle never arrives
        """

        async def _bootstrap() -> ServiceScheduler:
            context = await handoff.receive(timeout=handoff_timeout)
            scheduler = cls(context.config_channel, intervals, pollers)
            scheduler.start()
            return scheduler

        return asyncio.create_task(_bootstrap(), name="service-scheduler-bootstrap")

    @property
    def exit_signal(self) -> asyncio.Event:
        return self._exit

    def start(self) -> None:
        """Spawn one task per platform."""
        if self._started:
            logger.warning("Service scheduler already started")
            return
        self._started = True
        for info in self._platforms.values():
            info.state = PlatformTaskState.RUNNING
            info.started_at = datetime.now(UTC)
            info.task = asyncio.create_task(
                self._run_platform(info), name=f"poller:{info.platform.value}"
            )
        logger.info(
            f"Service scheduler started {len(self._platforms)} pollers: "
            f"{', '.join(p.value for p in self._platforms)}"
        )

    def exit(self) -> None:
        """Broadcast exit to every poller."""
        if not self._exit.is_set():
            logger.info("Service scheduler exit requested")
        self._exit.set()

    async def _run_platform(self, info: PlatformTaskInfo) -> None:
        platform = info.platform
        logger.debug(f"{platform.value} poller running (interval={info.interval})")
        try:
            while not await self._exit_requested_within(info.interval):
                info.ticks += 1
                await self._tick(info)
        except Exception as e:
            info.state = PlatformTaskState.FAILED
            info.error = str(e)
            raise
        finally:
            info.stopped_at = datetime.now(UTC)
        info.state = PlatformTaskState.STOPPED
        logger.debug(f"{platform.value} poller stopped after {info.ticks} ticks")

    async def _exit_requested_within(self, interval: float | None) -> bool:
        """True if exit was raised before the interval elapsed."""
        if interval is None:
            await self._exit.wait()
            return True
        try:
            await asyncio.wait_for(self._exit.wait(), timeout=interval)
        except TimeoutError:
            return False
        return True

    async def _tick(self, info: PlatformTaskInfo) -> None:
        config = self._config_channel.current().data
        if not config.services.is_enabled(info.platform.value):
            return
        info.polls += 1
        await info.poller.poll(info.platform, config)

    async def finish(self) -> None:
        """Join every platform task; raise the first failure afterwards.

        Raises:
            PlatformTaskError: A poller raised
            TaskJoinError: A task was cancelled from outside
        """
        infos = [info for info in self._platforms.values() if info.task is not None]
        results = await asyncio.gather(
            *(info.task for info in infos if info.task is not None),
            return_exceptions=True,
        )

        first_error: SchedulerError | None = None
        for info, result in zip(infos, results, strict=True):
            error: SchedulerError | None = None
            if isinstance(result, asyncio.CancelledError):
                info.state = PlatformTaskState.FAILED
                error = TaskJoinError(info.platform.value)
            elif isinstance(result, BaseException):
                error = PlatformTaskError(info.platform.value, result)
            if error is None:
                continue
            logger.error(error.message, exc_info=result)
            if first_error is None:
                first_error = error

        if first_error is not None:
            raise first_error
        logger.info("Service scheduler finished")

    def is_healthy(self) -> bool:
        return all(
            info.state != PlatformTaskState.FAILED for info in self._platforms.values()
        )

    def get_status(self) -> dict[str, Any]:
        """Per-platform status for the health endpoint."""
        return {
            "exit_requested": self._exit.is_set(),
            "healthy": self.is_healthy(),
            "platforms": {
                info.platform.value: {
                    "state": info.state.value,
                    "interval": info.interval,
                    "ticks": info.ticks,
                    "polls": info.polls,
                    "started_at": info.started_at.isoformat() if info.started_at else None,
                    "stopped_at": info.stopped_at.isoformat() if info.stopped_at else None,
                    "error": info.error,
                }
                for info in self._platforms.values()
            },
        }
