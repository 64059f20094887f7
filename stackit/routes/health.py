"""
StackIt Backend — Health Check Route
======================================

What:  GET /health for load balancers and container health checks.
How:   Runs SELECT 1 through the app's Database. The service is "healthy"
       only when the database answers; otherwise 503 "unhealthy".
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from stackit import __version__
from stackit.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request):
    db_status = "connected"
    overall = "healthy"

    try:
        await request.app.state.database.ping()
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", e)

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall != "healthy":
        return JSONResponse(status_code=503, content=body.model_dump(by_alias=True))
    return body
