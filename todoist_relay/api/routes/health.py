"""Health check routes."""

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ...config import Settings
from ...operations import TodoistOperations
from ..deps import get_operations, get_settings

router = APIRouter(prefix="/health", tags=["health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("")
async def health_check(
    request: Request,
    ops: TodoistOperations = Depends(get_operations),
    settings: Settings = Depends(get_settings),
):
    """Full health check: server status plus Todoist connectivity.

    Returns 200 when Todoist is reachable, 503 (degraded) otherwise.
    """
    todoist = await ops.health_check()
    todoist["status"] = "connected" if todoist.pop("connected") else "disconnected"

    status = "healthy" if todoist["status"] == "connected" else "degraded"
    body = {
        "status": status,
        "timestamp": _now(),
        "checks": {
            "server": {
                "status": "healthy",
                "uptime_seconds": round(time.monotonic() - request.app.state.started_at, 1),
                "environment": settings.environment,
                "version": settings.server_version,
            },
            "todoist": todoist,
        },
    }
    return JSONResponse(status_code=200 if status == "healthy" else 503, content=body)


@router.get("/simple")
async def simple_health():
    """Liveness probe for load balancers. Never touches Todoist."""
    return {"status": "ok"}


@router.get("/ready")
async def readiness(ops: TodoistOperations = Depends(get_operations)):
    """Readiness probe: a single Todoist project listing must succeed."""
    if await ops.ready():
        return {"status": "ready", "timestamp": _now()}
    return JSONResponse(status_code=503, content={"status": "not_ready", "timestamp": _now()})
