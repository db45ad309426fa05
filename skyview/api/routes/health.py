"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if database is unreachable (readiness)
    - The distributed cache is reported but never fails readiness (it is optional)
"""

import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

import skyview.infrastructure.database as database
from skyview.api.dependencies import get_cache_lifecycle
from skyview.infrastructure.distributed_cache import DistributedCacheLifecycle

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "skyview-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(
    cache: DistributedCacheLifecycle | None = Depends(get_cache_lifecycle),
):
    """Readiness probe: database connectivity plus distributed cache status."""
    db_manager = database.db_manager
    db_ok = await db_manager.health_check() if db_manager else False

    if cache is None or not cache.enabled:
        cache_status = "disabled"
    elif await cache.health_check():
        cache_status = "healthy"
    else:
        cache_status = "unhealthy"

    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
                "checks": {"database": "unhealthy", "distributed_cache": cache_status},
            },
        )
    return {
        "status": "ready",
        "checks": {"database": "healthy", "distributed_cache": cache_status},
    }
