"""API Dependencies — resolve lifespan-owned singletons for route handlers.

Invariants:
    - ViewerService and DistributedCacheLifecycle live on app.state, built once in lifespan
    - Tests swap them through app.dependency_overrides
"""

from fastapi import Request

from skyview.infrastructure.distributed_cache import DistributedCacheLifecycle
from skyview.services.viewer_service import ViewerService


def get_viewer_service(request: Request) -> ViewerService:
    service = getattr(request.app.state, "viewer_service", None)
    if service is None:
        raise RuntimeError("Viewer service not initialized")
    return service


def get_cache_lifecycle(request: Request) -> DistributedCacheLifecycle | None:
    return getattr(request.app.state, "cache_lifecycle", None)
