"""Service test fixtures — fake-backed ViewerService + FastAPI test client.

Invariants:
    - Upstream HTTP is always an httpx.MockTransport; no test touches the network
    - get_viewer_service overridden so routes run against the fake-backed service

Design Decisions:
    - One `upstream` fixture records every request and replies through a
      per-test handler, so tests assert both outcomes and attempt order
"""

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from skyview.api.dependencies import get_viewer_service
from skyview.core.telemetry import CutoutTelemetry
from skyview.main import app
from skyview.services.catalog_labels import CatalogLabelResolver
from skyview.services.cutout_fetcher import CutoutFetcher
from skyview.services.viewer_service import ViewerService
from tests.services.fakes import (
    PRIMARY_URL,
    TAP_URL,
    FakeAuditLog,
    FakeDistributedCache,
    FakeSnapshotRepository,
    FakeSnapshotStorage,
    FakeViewerStateRepository,
    Upstream,
    make_cutout_cache,
    make_label_cache,
)


@pytest.fixture
def upstream():
    return Upstream()


@pytest.fixture
async def http(upstream):
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream)) as client:
        yield client


@pytest.fixture
def mirror():
    return FakeDistributedCache()


@pytest.fixture
def state_repo():
    return FakeViewerStateRepository()


@pytest.fixture
def snapshot_repo():
    return FakeSnapshotRepository()


@pytest.fixture
def snapshot_storage():
    return FakeSnapshotStorage()


@pytest.fixture
def audit_log():
    return FakeAuditLog()


@pytest.fixture
def viewer_service(http, state_repo, snapshot_repo, snapshot_storage, audit_log):
    fetcher = CutoutFetcher(http, make_cutout_cache(), CutoutTelemetry(), PRIMARY_URL)
    resolver = CatalogLabelResolver(http, make_label_cache(), TAP_URL)
    return ViewerService(
        state_repo, snapshot_repo, snapshot_storage, audit_log, fetcher, resolver,
        snapshot_retention_days=30,
    )


@pytest.fixture
async def client(viewer_service):
    """FastAPI test client with the viewer service dependency overridden."""
    app.dependency_overrides[get_viewer_service] = lambda: viewer_service
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    app.dependency_overrides.clear()
