"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via constructor injection

Design Decisions:
    - Protocol over ABC: structural subtyping, fakes in tests need no inheritance
    - Record dataclasses live here so the storage technology never leaks into core types
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from skyview.core.domain_types import AuditAction, AuditEntityType, ShortId


@dataclass(frozen=True)
class StoredViewerState:
    """Persisted viewer state as returned by the repository."""
    id: UUID
    short_id: ShortId
    encoded_state: str
    state_json: dict
    created_at: datetime


@dataclass(frozen=True)
class StoredSnapshot:
    id: UUID
    file_name: str
    mime_type: str
    size_bytes: int
    short_id: str | None
    state_json: dict | None
    created_at: datetime


class ViewerStateRepository(Protocol):
    """Contract for viewer-state persistence — implemented by shell."""
    async def create(
        self, short_id: ShortId, encoded_state: str, state_json: dict,
    ) -> StoredViewerState: ...
    async def find_by_short_id(self, short_id: str) -> StoredViewerState | None: ...


class SnapshotRepository(Protocol):
    """Contract for snapshot metadata persistence — implemented by shell."""
    async def create(
        self,
        snapshot_id: UUID,
        file_name: str,
        mime_type: str,
        size_bytes: int,
        short_id: str | None,
        state_json: dict | None,
    ) -> StoredSnapshot: ...


class SnapshotStorage(Protocol):
    """Contract for snapshot binary storage — implemented by shell."""
    async def write(self, file_name: str, data: bytes) -> None: ...
    async def read(self, file_name: str) -> bytes | None: ...


class AuditLogSink(Protocol):
    """Contract for the audit trail — implemented by shell."""
    async def record(
        self,
        action: AuditAction,
        entity_type: AuditEntityType,
        entity_id: str,
        changes: dict,
    ) -> None: ...


class DistributedCache(Protocol):
    """Contract for the optional cross-process cache (Redis in production)."""
    async def get(self, key: str) -> bytes | None: ...
    async def put(self, key: str, value: bytes, ttl_ms: int) -> None: ...
    async def ping(self) -> bool: ...
    async def close(self) -> None: ...
    async def disconnect(self) -> None: ...
