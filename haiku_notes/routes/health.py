"""
Haiku Notes Backend: Liveness and Health Routes
================================================

What:  /ping for liveness probes and /health for a database-aware status.
Who:   Load balancers, container health checks, monitoring.

Status levels:
    healthy:    database reachable (HTTP 200)
    unhealthy:  database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from haiku_notes import __version__
from haiku_notes.schemas.note import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/ping",
    response_class=Response,
    responses={200: {"description": "Process is up, empty body"}},
    summary="Liveness probe",
)
async def ping() -> Response:
    return Response(status_code=200)


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request):
    """
    Probe the database with SELECT 1 and report aggregate status.

    Any driver failure counts as disconnected; the reason is logged, never
    returned.
    """
    db_status = "connected"
    overall = "healthy"

    try:
        await request.app.state.database.ping()
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall != "healthy":
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
