"""Application lifecycle management for startup and shutdown tasks.

Startup order matters here:
1. Logging
2. Scheduler bootstrap task is spawned FIRST and parks on the one-shot handoff
3. AppContext is built (session store, config channel, surface, clients)
4. Context is handed to the scheduler -> pollers start
5. Backend config watcher starts, context attached to app.state for the routers

Shutdown raises the exit broadcast, joins every poller (finish() never
abandons a task), stops the watcher, then closes network clients.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from gamepresence.application.context import AppContext
from gamepresence.application.workers import (
    BackendConfigWatcher,
    OneShot,
    ServiceScheduler,
    intervals_from_settings,
)
from gamepresence.config import get_settings
from gamepresence.domain.exceptions import SchedulerError
from gamepresence.infrastructure.observability import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = getattr(app.state, "settings", None) or get_settings()

    configure_logging(
        log_level=settings.log.level,
        json_format=settings.log.json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s", settings.app_name)

    handoff: OneShot[AppContext] = OneShot()
    bootstrap = ServiceScheduler.spawn(
        handoff,
        intervals_from_settings(settings.scheduler),
        handoff_timeout=settings.scheduler.handoff_timeout,
    )

    try:
        context = AppContext.build(settings)
    except Exception:
        handoff.close()
        bootstrap.cancel()
        raise
    app.state.context = context
    handoff.send(context)

    # Bootstrap failure (e.g. handle timeout) is fatal for startup
    scheduler = await bootstrap
    app.state.scheduler = scheduler

    watcher = BackendConfigWatcher(context.config_channel, context.session_store)
    watcher.start()
    logger.info("Application startup complete")

    try:
        yield
    finally:
        logger.info("Shutting down application")
        scheduler.exit()
        try:
            await scheduler.finish()
        except SchedulerError as e:
            logger.error("Service scheduler reported failure on shutdown: %s", e.message)
        await watcher.stop()
        await context.aclose()
        logger.info("Application shutdown complete")
