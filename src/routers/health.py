"""Health check endpoint. Public, no auth required."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from src.config import get_settings
from src.dependencies import Scheduler
from src.services.database import get_pool

router = APIRouter(tags=["system"])
logger = logging.getLogger("inventory.health")


@router.get("/health")
async def health_check(scheduler: Scheduler) -> dict:
    """Liveness probe. Returns 200 if the API process is up.

    Also performs a lightweight DB connectivity check and reports whether
    the catalog sync loop is alive.
    """
    settings = get_settings()
    db_ok = False
    try:
        pool = get_pool()
        async with pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
        db_ok = True
    except Exception as exc:
        logger.warning("Health check DB probe failed: %s", exc)

    sync_running = scheduler is not None and scheduler.running
    return {
        "status": "healthy" if db_ok else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected" if db_ok else "unreachable",
        "catalog_sync": "running" if sync_running else "stopped",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
