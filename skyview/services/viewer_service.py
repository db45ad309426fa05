"""Viewer Service — facade over state sharing, snapshots, cutouts, and catalog labels.

Invariants:
    - create_state validates before any IO; invalid payloads never reach persistence
    - Every created state and snapshot is followed by exactly one audit record
    - create_state redraws a short ID the unique index rejects at insert, within the
      same attempt bound as lookup collisions
    - resolve_state raises ResourceNotFoundError for unknown short IDs
    - encode_state/decode_state are pure (no IO)

Design Decisions:
    - Constructor injection of narrow collaborators; build_viewer_service wires the
      production graph from Settings so tests can assemble their own
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime

import httpx

from skyview.config import Settings
from skyview.core.catalog_query import CatalogLabel
from skyview.core.domain_types import AuditAction, AuditEntityType, EncodedState
from skyview.core.errors import ErrorContext, ResourceNotFoundError
from skyview.core.repository_protocols import (
    AuditLogSink,
    SnapshotRepository,
    SnapshotStorage,
    ViewerStateRepository,
)
from skyview.core.snapshot import (
    DEFAULT_MAX_SNAPSHOT_BYTES,
    PNG_MIME_TYPE,
    decode_png_data_url,
    effective_retention_days,
)
from skyview.core.state_codec import decode_state, encode_state
from skyview.core.telemetry import CutoutTelemetry, TelemetrySnapshot
from skyview.core.ttl_cache import TTLCache
from skyview.core.viewer_state import (
    ViewerState, parse_state, state_to_dict, validate_state,
)
from skyview.services.catalog_labels import (
    CatalogLabelResolver, decode_labels, encode_labels,
)
from skyview.services.cutout_fetcher import (
    CutoutFetcher,
    CutoutRequest,
    CutoutResult,
    decode_cutout_payload,
    encode_cutout_payload,
)
from skyview.services.mirrored_cache import MirroredCache
from skyview.services.short_id_generator import ShortIdGenerator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StateCreated:
    id: uuid.UUID
    short_id: str
    encoded_state: str
    state: ViewerState
    permalink_path: str
    created_at: datetime


@dataclass(frozen=True)
class ResolvedState:
    id: uuid.UUID
    short_id: str
    encoded_state: str
    state: ViewerState
    created_at: datetime


@dataclass(frozen=True)
class SnapshotCreated:
    id: uuid.UUID
    image_url: str
    short_id: str | None
    size_bytes: int
    created_at: datetime
    retention_days: int


class ViewerService:

    def __init__(
        self,
        states: ViewerStateRepository,
        snapshots: SnapshotRepository,
        snapshot_storage: SnapshotStorage,
        audit: AuditLogSink,
        cutouts: CutoutFetcher,
        labels: CatalogLabelResolver,
        short_ids: ShortIdGenerator | None = None,
        snapshot_retention_days: int = 30,
        snapshot_max_bytes: int = DEFAULT_MAX_SNAPSHOT_BYTES,
    ):
        self._states = states
        self._snapshots = snapshots
        self._snapshot_storage = snapshot_storage
        self._audit = audit
        self._cutouts = cutouts
        self._labels = labels
        self._short_ids = short_ids or ShortIdGenerator(states)
        self.snapshot_retention_days = effective_retention_days(snapshot_retention_days)
        self._snapshot_max_bytes = snapshot_max_bytes

    # ─── Viewer state ───────────────────────────────────────────

    async def create_state(self, payload: dict | ViewerState) -> StateCreated:
        if isinstance(payload, ViewerState):
            validate_state(payload)
            state = payload
        else:
            state = parse_state(payload)

        encoded = encode_state(state)
        state_json = state_to_dict(state)
        saved = await self._short_ids.claim(
            lambda short_id: self._states.create(short_id, encoded, state_json),
        )

        await self._audit.record(
            AuditAction.CREATE,
            AuditEntityType.VIEWER_STATE,
            str(saved.id),
            {"short_id": saved.short_id, "survey": state.survey},
        )
        logger.info("Viewer state created", extra={"short_id": saved.short_id})

        return StateCreated(
            id=saved.id,
            short_id=saved.short_id,
            encoded_state=saved.encoded_state,
            state=state,
            permalink_path=f"/view/{saved.short_id}",
            created_at=saved.created_at,
        )

    async def resolve_state(self, short_id: str) -> ResolvedState:
        saved = await self._states.find_by_short_id(short_id)
        if saved is None:
            raise ResourceNotFoundError(
                "Viewer state", short_id, ErrorContext(short_id=short_id),
            )
        return ResolvedState(
            id=saved.id,
            short_id=saved.short_id,
            encoded_state=saved.encoded_state,
            state=parse_state(saved.state_json),
            created_at=saved.created_at,
        )

    def encode_state(self, state: ViewerState) -> EncodedState:
        return encode_state(state)

    def decode_state(self, encoded: str) -> ViewerState:
        return decode_state(encoded)

    # ─── Snapshots ──────────────────────────────────────────────

    async def create_snapshot(
        self,
        image_data_url: str,
        short_id: str | None = None,
        state: dict | None = None,
    ) -> SnapshotCreated:
        png = decode_png_data_url(image_data_url, self._snapshot_max_bytes)
        state_json = state_to_dict(parse_state(state)) if state is not None else None

        snapshot_id = uuid.uuid4()
        file_name = f"{snapshot_id}.png"
        await self._snapshot_storage.write(file_name, png)

        snapshot = await self._snapshots.create(
            snapshot_id, file_name, PNG_MIME_TYPE, len(png), short_id, state_json,
        )
        await self._audit.record(
            AuditAction.CREATE,
            AuditEntityType.SNAPSHOT,
            str(snapshot.id),
            {
                "type": "viewer_snapshot",
                "short_id": snapshot.short_id,
                "size_bytes": snapshot.size_bytes,
                "retention_days": self.snapshot_retention_days,
            },
        )

        return SnapshotCreated(
            id=snapshot.id,
            image_url=f"/api/v1/view/snapshots/{snapshot.file_name}",
            short_id=snapshot.short_id,
            size_bytes=snapshot.size_bytes,
            created_at=snapshot.created_at,
            retention_days=self.snapshot_retention_days,
        )

    async def read_snapshot(self, file_name: str) -> bytes:
        try:
            data = await self._snapshot_storage.read(file_name)
        except ValueError:
            data = None
        if data is None:
            raise ResourceNotFoundError("Snapshot", file_name)
        return data

    # ─── Cutouts & labels ───────────────────────────────────────

    async def download_cutout(self, request: CutoutRequest) -> CutoutResult:
        return await self._cutouts.fetch(request)

    async def get_nearby_labels(
        self, ra: float, dec: float, radius: float, limit: int,
    ) -> list[CatalogLabel]:
        return await self._labels.get_nearby_labels(ra, dec, radius, limit)

    def get_cutout_telemetry(self) -> TelemetrySnapshot:
        return self._cutouts.telemetry_snapshot()


def build_viewer_service(
    settings: Settings,
    http: httpx.AsyncClient,
    states: ViewerStateRepository,
    snapshots: SnapshotRepository,
    snapshot_storage: SnapshotStorage,
    audit: AuditLogSink,
    mirror=lambda: None,
) -> ViewerService:
    """Wire the production object graph from settings.

    `mirror` returns the live distributed cache (or None) at call time.
    """
    cutout_cache: MirroredCache = MirroredCache(
        "cutout",
        TTLCache(max_entries=settings.cutout_cache_max_entries),
        settings.cutout_cache_ttl_ms,
        encode=encode_cutout_payload,
        decode=decode_cutout_payload,
        mirror=mirror,
    )
    label_cache: MirroredCache = MirroredCache(
        "labels",
        TTLCache(max_entries=settings.nearby_labels_cache_max_entries),
        settings.nearby_labels_cache_ttl_ms,
        encode=encode_labels,
        decode=decode_labels,
        mirror=mirror,
    )
    fetcher = CutoutFetcher(
        http,
        cutout_cache,
        CutoutTelemetry(),
        primary_url=settings.cutout_primary_url,
        secondary=settings.secondary_provider,
        timeout_seconds=settings.cutout_request_timeout_seconds,
    )
    resolver = CatalogLabelResolver(
        http,
        label_cache,
        tap_url=settings.catalog_tap_url,
        timeout_seconds=settings.catalog_request_timeout_seconds,
    )
    return ViewerService(
        states,
        snapshots,
        snapshot_storage,
        audit,
        fetcher,
        resolver,
        snapshot_retention_days=settings.snapshot_retention_days,
        snapshot_max_bytes=settings.snapshot_max_bytes,
    )
