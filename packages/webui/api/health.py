"""Health check endpoints for monitoring service status"""

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from shared.database import check_postgres_connection
from shared.plugins import PluginRegistry
from webui.dependencies import get_plugin_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])

# Health check timeout configuration
HEALTH_CHECK_TIMEOUT = 5.0  # seconds


@router.get("/")
async def health_check() -> dict[str, str]:
    """Basic liveness check."""
    return {"status": "healthy"}


@router.get("/readyz", response_model=None)
async def readiness_check(registry: PluginRegistry = Depends(get_plugin_registry)) -> dict[str, Any] | JSONResponse:
    """Readiness: database reachable, with a summary of loaded plugins."""
    try:
        database_ok = await asyncio.wait_for(check_postgres_connection(), timeout=HEALTH_CHECK_TIMEOUT)
    except TimeoutError:
        logger.warning("Database readiness check timed out after %.1fs", HEALTH_CHECK_TIMEOUT)
        database_ok = False

    plugins = registry.list()
    body: dict[str, Any] = {
        "status": "ready" if database_ok else "not_ready",
        "database": "healthy" if database_ok else "unhealthy",
        "plugins": {
            "loaded": len(plugins),
            "enabled": sum(1 for p in plugins if p.enabled),
        },
    }
    if not database_ok:
        return JSONResponse(status_code=503, content=body)
    return body
