"""Viewer Routes — shareable state, snapshots, cutout downloads, and catalog labels.

Invariants:
    - Routes never contain business logic (delegate to ViewerService)
    - Fixed paths are registered before GET /{short_id} so they are never shadowed
    - Domain failures propagate as SkyViewError to the global handlers

Design Decisions:
    - Cutouts are returned whole (FITS attachment); payloads are bounded by the ladder
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response

from skyview.api.dependencies import get_viewer_service
from skyview.core.domain_types import CutoutDetail
from skyview.core.snapshot import PNG_MIME_TYPE
from skyview.core.viewer_state import state_to_dict
from skyview.schemas.viewer import (
    CutoutTelemetryResponse,
    NearbyLabel,
    SnapshotCreate,
    SnapshotCreatedResponse,
    ViewerStateCreate,
    ViewerStateCreated,
    ViewerStateResolved,
)
from skyview.services.cutout_fetcher import CutoutRequest
from skyview.services.viewer_service import ViewerService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/view", tags=["viewer"])


@router.post(
    "/state", response_model=ViewerStateCreated,
    status_code=status.HTTP_201_CREATED,
)
async def create_state(
    body: ViewerStateCreate,
    service: ViewerService = Depends(get_viewer_service),
):
    """Persist a viewer state and return its permalink."""
    created = await service.create_state(body.state)
    return ViewerStateCreated(
        id=created.id,
        short_id=created.short_id,
        encoded_state=created.encoded_state,
        state=state_to_dict(created.state),
        permalink_path=created.permalink_path,
        created_at=created.created_at,
    )


@router.post(
    "/snapshot", response_model=SnapshotCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_snapshot(
    body: SnapshotCreate,
    service: ViewerService = Depends(get_viewer_service),
):
    created = await service.create_snapshot(
        body.image_data_url, short_id=body.short_id, state=body.state,
    )
    return SnapshotCreatedResponse(**vars(created))


@router.get("/snapshots/{file_name}")
async def get_snapshot(
    file_name: str,
    service: ViewerService = Depends(get_viewer_service),
):
    data = await service.read_snapshot(file_name)
    return Response(content=data, media_type=PNG_MIME_TYPE)


@router.get("/cutout")
async def download_cutout(
    ra: float,
    dec: float,
    fov: float,
    survey: str = Query(min_length=2),
    label: str | None = None,
    detail: str | None = None,
    service: ViewerService = Depends(get_viewer_service),
):
    """Download a FITS cutout, falling back across resolutions and providers."""
    result = await service.download_cutout(CutoutRequest(
        ra=ra, dec=dec, fov=fov, survey=survey,
        label=label, detail=CutoutDetail.parse(detail),
    ))
    return Response(
        content=result.buffer,
        media_type=result.content_type,
        headers={
            "Content-Disposition": f'attachment; filename="{result.file_name}"',
        },
    )


@router.get("/labels/nearby", response_model=list[NearbyLabel])
async def nearby_labels(
    ra: float,
    dec: float,
    radius: float = 0.09,
    limit: int = 20,
    service: ViewerService = Depends(get_viewer_service),
):
    labels = await service.get_nearby_labels(ra, dec, radius, limit)
    return [label.to_dict() for label in labels]


@router.get("/telemetry", response_model=CutoutTelemetryResponse)
async def cutout_telemetry(
    service: ViewerService = Depends(get_viewer_service),
):
    return service.get_cutout_telemetry().to_dict()


@router.get("/{short_id}", response_model=ViewerStateResolved)
async def resolve_state(
    short_id: str,
    service: ViewerService = Depends(get_viewer_service),
):
    resolved = await service.resolve_state(short_id)
    return ViewerStateResolved(
        id=resolved.id,
        short_id=resolved.short_id,
        encoded_state=resolved.encoded_state,
        state=state_to_dict(resolved.state),
        created_at=resolved.created_at,
    )
