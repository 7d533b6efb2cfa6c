"""
DevTasks Backend - Health Check Route
======================================

What:  Liveness/readiness probe for load balancers and Docker.
How:   Runs SELECT 1 against the database and reports the result with the
       environment, version and uptime. Always 200 when the process is up;
       a failed database check only changes `status` and `database`.
When:  Excluded from rate limiting and access logging.
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter
from sqlalchemy import text

from devtasks import __version__
from devtasks.config import settings
from devtasks.database import engine
from devtasks.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    db_status = "connected"
    overall = "OK"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "DEGRADED"
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        message="DevTasks API is running",
        environment=settings.environment,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
        timestamp=datetime.now(timezone.utc),
    )
