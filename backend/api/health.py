"""
Health endpoints for the Modle backend.

Liveness and readiness checks for operations; no secrets are exposed.
"""

import logging
import os

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import inspect

from backend.core.database import get_engine

logger = logging.getLogger("modle")

root_router = APIRouter(tags=["health"])

REQUIRED_TABLES = [
    "app_users",
    "puzzles",
]


def _database_configured() -> bool:
    return bool(os.getenv("DATABASE_URL") or os.getenv("TEST_DATABASE_URL"))


@root_router.get("/healthz")
def healthz():
    """Lightweight liveness check (no deps)."""
    return {"status": "ok"}


@root_router.get("/readyz")
def readyz():
    """Readiness check: DB connectivity + required tables (in-memory mode is always ready)."""
    if not _database_configured():
        return {"status": "ok", "store": "memory"}

    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.exec_driver_sql("SELECT 1")

        inspector = inspect(engine)
        missing = [t for t in REQUIRED_TABLES if not inspector.has_table(t)]
        if missing:
            detail = f"missing tables: {', '.join(missing)}"
            logger.warning(f"[readyz] {detail}")
            return JSONResponse(status_code=503, content={"status": "error", "detail": detail})

        return {"status": "ok", "store": "sql"}
    except Exception as e:
        logger.error(f"[readyz] readiness check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "error", "detail": "database unreachable"})
