"""SkyView API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map SkyViewError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, shared HTTP client, distributed cache and ViewerService are built
      in the lifespan and torn down in reverse order

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - One httpx.AsyncClient shared by cutout and catalog lookups (connection reuse)
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import skyview.infrastructure.database as database
from skyview.api.error_handlers import register_error_handlers
from skyview.api.routes import health, viewer
from skyview.config import get_settings
from skyview.infrastructure.distributed_cache import DistributedCacheLifecycle
from skyview.infrastructure.observability import setup_logging
from skyview.infrastructure.repositories import (
    SqlAuditLogSink, SqlSnapshotRepository, SqlViewerStateRepository,
)
from skyview.infrastructure.snapshot_storage import LocalSnapshotStorage
from skyview.services.viewer_service import build_viewer_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    db = database.db_manager

    http = httpx.AsyncClient(follow_redirects=True)
    cache_lifecycle = DistributedCacheLifecycle(settings)
    await cache_lifecycle.start()

    app.state.cache_lifecycle = cache_lifecycle
    app.state.viewer_service = build_viewer_service(
        settings,
        http,
        SqlViewerStateRepository(db),
        SqlSnapshotRepository(db),
        LocalSnapshotStorage(settings.snapshot_storage_dir),
        SqlAuditLogSink(db),
        mirror=cache_lifecycle.active_client,
    )
    logger.info("SkyView API started")
    try:
        yield
    finally:
        logger.info("SkyView API shutting down")
        await cache_lifecycle.shutdown()
        await http.aclose()
        await db.engine.dispose()


app = FastAPI(
    title="SkyView API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(viewer.router)

register_error_handlers(app)
