"""Viewer Schemas — Pydantic models for the /api/v1/view boundary.

Invariants:
    - Request bodies stay loose (dict for state); range and label rules are
      enforced once, in core/viewer_state.py, so API and service share one error path
    - Response models mirror the service result dataclasses field for field
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ViewerStateCreate(BaseModel):
    state: dict


class NamedPointSchema(BaseModel):
    name: str
    ra: float
    dec: float


class ViewerStateSchema(BaseModel):
    ra: float
    dec: float
    fov: float
    survey: str
    labels: list[NamedPointSchema] | None = None


class ViewerStateCreated(BaseModel):
    id: UUID
    short_id: str
    encoded_state: str
    state: ViewerStateSchema
    permalink_path: str
    created_at: datetime


class ViewerStateResolved(BaseModel):
    id: UUID
    short_id: str
    encoded_state: str
    state: ViewerStateSchema
    created_at: datetime


class SnapshotCreate(BaseModel):
    """Snapshot upload: PNG as a data URL, optionally tied to a saved state."""
    image_data_url: str = Field(min_length=1)
    short_id: str | None = Field(None, max_length=16)
    state: dict | None = None


class SnapshotCreatedResponse(BaseModel):
    id: UUID
    image_url: str
    short_id: str | None
    size_bytes: int
    created_at: datetime
    retention_days: int


class NearbyLabel(BaseModel):
    name: str
    ra: float
    dec: float
    object_type: str
    confidence: float


class CutoutTelemetryResponse(BaseModel):
    requests_total: int
    success_total: int
    provider_attempts_total: int
    provider_fallback_total: int
    last_success_at: datetime | None
