"""
Fetchr — Health Check Route
============================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Reports the registered handler keys and uptime. A service with no
       registered handlers can answer nothing but 404s, so it reports
       "degraded" (still HTTP 200).
"""

import logging
import time

from fastapi import APIRouter, Request

from fetchr import __version__
from fetchr.schemas.resource import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request) -> HealthResponse:
    handlers = request.app.state.registry.names()
    status = "healthy" if handlers else "degraded"
    if not handlers:
        logger.warning("Health check: no resource handlers registered")

    return HealthResponse(
        status=status,
        version=__version__,
        handlers=handlers,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
