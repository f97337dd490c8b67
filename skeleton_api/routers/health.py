"""
Health Router

Probe endpoints for load balancers and orchestrators, plus the Prometheus
scrape endpoint. None of these are rate limited or wrapped in the
response envelope.

- /health: database and broker status, 503 when a dependency is down
- /ready:  503 until the database answers
- /live:   always 200 while the process serves requests
- /metrics: Prometheus text exposition
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from skeleton_api.database import ping
from skeleton_api.dependencies import DbSession, Events

logger = logging.getLogger(__name__)

HEALTHY = "healthy"
UNHEALTHY = "unhealthy"
DISABLED = "disabled"

router = APIRouter(tags=["Health"])


def database_status(db) -> str:
    try:
        ping(db)
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return UNHEALTHY
    return HEALTHY


@router.get(
    "/health",
    summary="Health check",
    description="Check the service and its dependencies.",
    responses={503: {"description": "A dependency is unhealthy"}},
)
def health_check(request: Request, db: DbSession, events: Events) -> JSONResponse:
    """
    Health check endpoint.

    The broker is optional: when REDIS_URL is not configured it is
    reported as "disabled" and does not make the service unhealthy.
    """
    services = {"database": database_status(db)}
    if events.enabled:
        services["broker"] = HEALTHY if events.ping() else UNHEALTHY
    else:
        services["broker"] = DISABLED

    overall = UNHEALTHY if UNHEALTHY in services.values() else HEALTHY
    body = {
        "status": overall,
        "timestamp": datetime.now(UTC).isoformat(),
        "services": services,
        "version": request.app.version,
    }
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE if overall == UNHEALTHY else status.HTTP_200_OK
    return JSONResponse(status_code=status_code, content=body)


@router.get("/ready", summary="Readiness check")
def readiness_check(db: DbSession) -> JSONResponse:
    """Ready once the database answers."""
    ready = database_status(db) == HEALTHY
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if ready else "not ready",
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )


@router.get("/live", summary="Liveness check")
async def liveness_check() -> dict:
    """Alive as long as the event loop answers."""
    return {"status": "alive", "timestamp": datetime.now(UTC).isoformat()}


@router.get("/metrics", summary="Prometheus metrics", include_in_schema=False)
async def metrics(request: Request) -> Response:
    """Expose this application's metrics registry."""
    payload, content_type = request.app.state.metrics.render()
    return Response(content=payload, media_type=content_type)
