"""
WriterID Portal Backend — Health Check Route
=============================================

What:  Liveness/readiness probe for containers and load balancers.
How:   SELECT 1 against the database plus the storage backend's own probe.

Status levels:
    - healthy:   database and storage reachable (HTTP 200)
    - degraded:  storage unreachable; reads still work (HTTP 200)
    - unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from writerid_portal import __version__
from writerid_portal.database import engine
from writerid_portal.dependencies import get_storage_service
from writerid_portal.schemas.common import HealthResponse
from writerid_portal.services.storage_base import StorageService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check(
    response: Response,
    storage: StorageService = Depends(get_storage_service),
) -> HealthResponse:
    db_status = "connected"
    storage_status = "available"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Storage ─────────────────────────────────────────────────────
    if not await storage.health_check():
        logger.warning("Health check: storage unreachable")
        storage_status = "unavailable"
        overall = "degraded" if overall != "unhealthy" else overall

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
