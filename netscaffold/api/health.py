"""Liveness endpoints. Unlike the other routes these answer with a flat JSON object."""

from __future__ import annotations

import os
import platform
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from .. import __version__
from ..scaffolder.dotnet import DotNetCli
from ..scaffolder.packager import pending_cleanups
from .deps import get_cli

router = APIRouter(prefix="/api/health", tags=["health"])


def _base(request: Request, message: str) -> dict:
    return {
        "success": True,
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - request.app.state.started_at, 3),
        "environment": "development" if request.app.state.config.enable_dev_routes else "production",
        "version": __version__,
    }


@router.get("")
async def health(request: Request, cli: DotNetCli = Depends(get_cli)) -> dict:
    """Service status plus the detected .NET SDK version."""
    payload = _base(request, "API is running successfully")
    payload.update(
        platform=platform.system().lower(),
        pythonVersion=platform.python_version(),
        dotnetVersion=await cli.get_version() or "Not available",
    )
    return payload


@router.get("/detailed")
async def health_detailed(request: Request) -> dict:
    payload = _base(request, "API health check - detailed")
    payload["system"] = {
        "platform": platform.system().lower(),
        "pythonVersion": platform.python_version(),
        "pid": os.getpid(),
        "templateCache": request.app.state.scaffolder.renderer.cache_stats(),
        "pendingCleanups": len(pending_cleanups()),
    }
    return payload
