"""
FakeSO Backend — Health Check Route
=====================================

What:  Health check endpoint for monitoring and load balancer probes.
Why:   Load balancers and Docker need to know whether this instance can
       serve traffic; that requires a reachable database.
Who:   Called by Docker health checks, load balancers, and monitoring systems.

Status levels:
    - healthy:   database reachable (HTTP 200)
    - unhealthy: database unreachable (HTTP 503)

The real-time subscriber count is reported for monitoring only; it never
makes the service unhealthy.
"""

import logging
import time

from fastapi import APIRouter, Response
from sqlalchemy import text

from fakeso import __version__
from fakeso.database import engine
from fakeso.schemas.common import HealthResponse
from fakeso.services.event_bus import event_bus

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Track when the service started for uptime reporting
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description=(
        "Returns the health status of the backend service and its database. "
        "Responds 503 when the database cannot be reached."
    ),
)
async def health_check(response: Response) -> HealthResponse:
    """
    Probe the database with SELECT 1 and report aggregate status.

    Returns:
        HealthResponse with database status, subscriber count and uptime.
    """
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        subscribers=event_bus.subscriber_count,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
