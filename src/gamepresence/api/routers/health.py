"""Health check endpoints.

- /health/live     -> process is up
- /health/workers  -> per-platform poller status from the service scheduler
"""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from gamepresence.api.dependencies import get_scheduler
from gamepresence.application.workers import ServiceScheduler

router = APIRouter(prefix="/health", tags=["health"])


class LivenessStatus(BaseModel):
    """Simple liveness probe response."""

    status: str = Field(description="alive or dead")
    timestamp: str = Field(description="ISO timestamp")


@router.get("/live", response_model=LivenessStatus)
async def liveness_probe() -> LivenessStatus:
    """Returns 200 while the process is running - no dependency checks."""
    return LivenessStatus(status="alive", timestamp=datetime.now(UTC).isoformat())


@router.get("/workers")
async def workers_status(
    scheduler: ServiceScheduler | None = Depends(get_scheduler),
) -> JSONResponse:
    """Poller status; 503 when the scheduler isn't running or a poller failed."""
    body: dict[str, Any] = {"timestamp": datetime.now(UTC).isoformat()}
    if scheduler is None:
        body["status"] = "not_started"
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)

    body.update(scheduler.get_status())
    body["status"] = "healthy" if scheduler.is_healthy() else "unhealthy"
    code = status.HTTP_200_OK if scheduler.is_healthy() else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=code, content=body)
