"""
Liveness and readiness probes for the ReliefAnchor service.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import inspect

from reliefanchor.core.database import check_connection, device_storage, get_engine

logger = logging.getLogger("reliefanchor")

root_router = APIRouter(tags=["health"])


@root_router.get("/healthz")
def healthz():
    """Lightweight liveness check (no deps)."""
    return {"status": "ok"}


@root_router.get("/readyz")
def readyz():
    """Readiness check: DB connectivity + device storage table."""
    try:
        engine = get_engine()
        if not check_connection(engine):
            return JSONResponse(status_code=503, content={"status": "error", "detail": "database unreachable"})
        if not inspect(engine).has_table(device_storage.name):
            detail = f"missing tables: {device_storage.name}"
            logger.warning(f"[readyz] {detail}")
            return JSONResponse(status_code=503, content={"status": "error", "detail": detail})
        return {"status": "ok"}
    except Exception as e:
        logger.error(f"[readyz] readiness check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "error", "detail": "database unreachable"})
