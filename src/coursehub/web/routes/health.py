"""Health check endpoint.

Reports the API version and whether the course database answers a
trivial query. A failing store degrades the status but still answers 200.
"""

import sqlite3

import structlog
from fastapi import APIRouter

from coursehub import __version__
from coursehub.db import database
from coursehub.web.schemas import HealthResponse

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])


def _database_status() -> str:
    try:
        with database.get_db() as conn:
            conn.execute("SELECT 1").fetchone()
    except sqlite3.Error:
        logger.warning("health.database_unavailable", exc_info=True)
        return "unavailable"
    return "ok"


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check API and database status."""
    database_status = _database_status()
    return HealthResponse(
        status="ok" if database_status == "ok" else "degraded",
        version=__version__,
        database=database_status,
    )
