"""Viewer Routes — HTTP contract over the fake-backed ViewerService.

Invariants:
    - Domain errors map to their http_status with the structured error envelope
    - Cutouts download as attachments named after the label
"""

import base64
import json

import httpx
from sqlalchemy.exc import OperationalError
from starlette.requests import Request

from skyview.api.error_handlers import unexpected_error_handler
from skyview.infrastructure.database import map_database_error

STATE = {"ra": 10.5, "dec": -20.25, "fov": 1.0, "survey": "VLASS"}
FITS = b"SIMPLE  =                    T"


async def test_create_then_resolve_state(client):
    res = await client.post("/api/v1/view/state", json={"state": STATE})
    assert res.status_code == 201
    body = res.json()
    assert body["permalink_path"] == f"/view/{body['short_id']}"
    assert body["state"] == {**STATE, "labels": None}

    res = await client.get(f"/api/v1/view/{body['short_id']}")
    assert res.status_code == 200
    assert res.json()["encoded_state"] == body["encoded_state"]


async def test_invalid_state_returns_400_envelope(client):
    res = await client.post("/api/v1/view/state", json={"state": {**STATE, "ra": 1000}})
    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "INVALID_VIEWER_STATE"
    assert error["category"] == "validation"


async def test_missing_body_field_returns_400(client):
    res = await client.post("/api/v1/view/state", json={})
    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["category"] == "validation"
    assert "timestamp" in error
    assert error["details"][0]["field"] == "body.state"


async def test_transient_database_failure_sets_retry_after(client, viewer_service, monkeypatch):
    async def unavailable(payload):
        raise map_database_error(
            OperationalError("INSERT", {}, ConnectionRefusedError("refused")),
        )

    monkeypatch.setattr(viewer_service, "create_state", unavailable)

    res = await client.post("/api/v1/view/state", json={"state": STATE})

    assert res.status_code == 503
    assert res.headers["retry-after"] == "1"
    error = res.json()["error"]
    assert error["code"] == "DATABASE_ERROR"
    assert error["context"]["retry_after_ms"] == 1000


async def test_errors_without_retry_hint_have_no_retry_after(client):
    res = await client.get("/api/v1/view/zzzzzzzz")
    assert "retry-after" not in res.headers


async def test_unexpected_error_uses_envelope_without_details():
    request = Request({
        "type": "http", "method": "GET", "path": "/api/v1/view/telemetry",
        "headers": [], "query_string": b"",
    })

    res = await unexpected_error_handler(request, RuntimeError("secret dsn"))

    assert res.status_code == 500
    error = json.loads(res.body)["error"]
    assert error["code"] == "INTERNAL_ERROR"
    assert error["category"] == "internal"
    assert "secret" not in res.body.decode()


async def test_unknown_short_id_returns_404(client):
    res = await client.get("/api/v1/view/zzzzzzzz")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_cutout_download_is_fits_attachment(client, upstream):
    upstream.handler = lambda request: httpx.Response(200, content=FITS)

    res = await client.get("/api/v1/view/cutout", params={
        "ra": 187.7, "dec": 12.39, "fov": 0.5, "survey": "P/DSS2/color",
        "label": "M87", "detail": "max",
    })

    assert res.status_code == 200
    assert res.content == FITS
    assert res.headers["content-type"].startswith("application/fits")
    assert res.headers["content-disposition"] == 'attachment; filename="M87.fits"'
    assert upstream.requests[0].url.params["width"] == "3072"


async def test_cutout_exhaustion_returns_503(client, upstream):
    upstream.handler = lambda request: httpx.Response(503)

    res = await client.get("/api/v1/view/cutout", params={
        "ra": 1, "dec": 1, "fov": 1, "survey": "VLASS",
    })

    assert res.status_code == 503
    assert res.json()["error"]["code"] == "UPSTREAM_UNAVAILABLE"


async def test_cutout_requires_coordinates(client, upstream):
    res = await client.get("/api/v1/view/cutout", params={"ra": 1, "survey": "VLASS"})
    assert res.status_code == 400
    assert upstream.requests == []


async def test_nearby_labels_never_fail(client, upstream):
    upstream.handler = lambda request: httpx.Response(502)
    res = await client.get("/api/v1/view/labels/nearby", params={"ra": 1, "dec": 1})
    assert res.status_code == 200
    assert res.json() == []


async def test_telemetry_reflects_requests(client, upstream):
    upstream.handler = lambda request: httpx.Response(200, content=FITS)
    await client.get("/api/v1/view/cutout", params={
        "ra": 1, "dec": 1, "fov": 1, "survey": "VLASS",
    })

    res = await client.get("/api/v1/view/telemetry")

    assert res.status_code == 200
    body = res.json()
    assert body["requests_total"] == 1
    assert body["success_total"] == 1
    assert body["provider_attempts_total"] == 1
    assert body["last_success_at"] is not None


async def test_snapshot_create_and_fetch(client):
    png = b"\x89PNG\r\n\x1a\nbody"
    res = await client.post("/api/v1/view/snapshot", json={
        "image_data_url": "data:image/png;base64," + base64.b64encode(png).decode(),
    })
    assert res.status_code == 201
    body = res.json()
    assert body["retention_days"] == 30

    res = await client.get(body["image_url"])
    assert res.status_code == 200
    assert res.content == png
    assert res.headers["content-type"] == "image/png"


async def test_snapshot_rejects_non_png(client):
    res = await client.post("/api/v1/view/snapshot", json={
        "image_data_url": "data:text/plain;base64,aGk=",
    })
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_SNAPSHOT"


async def test_liveness_probe(client):
    res = await client.get("/api/v1/health/")
    assert res.status_code == 200
    assert res.json()["status"] == "healthy"


class StubDatabase:
    def __init__(self, ok):
        self.ok = ok

    async def health_check(self):
        return self.ok


async def test_readiness_not_ready_without_database(client, monkeypatch):
    monkeypatch.setattr("skyview.infrastructure.database.db_manager", None)

    res = await client.get("/api/v1/health/ready")

    assert res.status_code == 503
    body = res.json()
    assert body["reason"] == "database_unavailable"
    assert body["checks"]["distributed_cache"] == "disabled"


async def test_readiness_ready_with_healthy_database(client, monkeypatch):
    monkeypatch.setattr("skyview.infrastructure.database.db_manager", StubDatabase(True))

    res = await client.get("/api/v1/health/ready")

    assert res.status_code == 200
    assert res.json()["checks"] == {"database": "healthy", "distributed_cache": "disabled"}
