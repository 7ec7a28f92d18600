"""Public liveness probe."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request

from src.config import get_settings

router = APIRouter(tags=["system"])
logger = logging.getLogger("femora.health")


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Liveness probe. Returns 200 if the API process is up.

    Also reports whether the app factory wired the engine and store.
    """
    settings = get_settings()
    state = request.app.state
    engine_ok = getattr(state, "cycle_engine", None) is not None
    store_ok = getattr(state, "period_store", None) is not None
    if not (engine_ok and store_ok):
        logger.warning("Health check: engine=%s store=%s", engine_ok, store_ok)

    return {
        "status": "healthy" if engine_ok and store_ok else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "engine": "ready" if engine_ok else "unavailable",
        "store": "ready" if store_ok else "unavailable",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
