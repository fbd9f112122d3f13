"""Background workers."""

from gamepresence.application.workers.config_watcher import BackendConfigWatcher
from gamepresence.application.workers.handoff import OneShot
from gamepresence.application.workers.service_scheduler import (
    IdlePoller,
    PlatformTaskState,
    ServiceScheduler,
    intervals_from_settings,
)

__all__ = [
    "BackendConfigWatcher",
    "IdlePoller",
    "OneShot",
    "PlatformTaskState",
    "ServiceScheduler",
    "intervals_from_settings",
]
