"""SQL Repositories — SQLAlchemy implementations of the core persistence protocols.

Invariants:
    - One session (and one commit) per repository call
    - ORM records never escape: callers receive core Stored* dataclasses
    - SQLAlchemy failures surface as DatabaseError via DatabaseSessionManager.session();
      a duplicate viewer_states.short_id surfaces as ShortIdConflictError
"""

import logging
import uuid

from sqlalchemy import select

from skyview.core.domain_types import AuditAction, AuditEntityType, ShortId
from skyview.core.repository_protocols import StoredSnapshot, StoredViewerState
from skyview.infrastructure.database import DatabaseSessionManager
from skyview.models.audit_log import AuditLogRecord
from skyview.models.viewer_snapshot import ViewerSnapshotRecord
from skyview.models.viewer_state import ViewerStateRecord

logger = logging.getLogger(__name__)


def _to_stored_state(record: ViewerStateRecord) -> StoredViewerState:
    return StoredViewerState(
        id=record.id,
        short_id=ShortId(record.short_id),
        encoded_state=record.encoded_state,
        state_json=record.state_json,
        created_at=record.created_at,
    )


class SqlViewerStateRepository:

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def create(
        self, short_id: ShortId, encoded_state: str, state_json: dict,
    ) -> StoredViewerState:
        record = ViewerStateRecord(
            short_id=short_id, encoded_state=encoded_state, state_json=state_json,
        )
        async with self._db.session() as session:
            session.add(record)
            await session.commit()
            await session.refresh(record)
        return _to_stored_state(record)

    async def find_by_short_id(self, short_id: str) -> StoredViewerState | None:
        async with self._db.session() as session:
            result = await session.execute(
                select(ViewerStateRecord).where(ViewerStateRecord.short_id == short_id),
            )
            record = result.scalar_one_or_none()
        return _to_stored_state(record) if record else None


class SqlSnapshotRepository:

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def create(
        self,
        snapshot_id: uuid.UUID,
        file_name: str,
        mime_type: str,
        size_bytes: int,
        short_id: str | None,
        state_json: dict | None,
    ) -> StoredSnapshot:
        record = ViewerSnapshotRecord(
            id=snapshot_id,
            file_name=file_name,
            mime_type=mime_type,
            size_bytes=size_bytes,
            short_id=short_id,
            state_json=state_json,
        )
        async with self._db.session() as session:
            session.add(record)
            await session.commit()
            await session.refresh(record)
        return StoredSnapshot(
            id=record.id,
            file_name=record.file_name,
            mime_type=record.mime_type,
            size_bytes=record.size_bytes,
            short_id=record.short_id,
            state_json=record.state_json,
            created_at=record.created_at,
        )


class SqlAuditLogSink:
    """Writes audit entries; failures propagate to the caller."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def record(
        self,
        action: AuditAction,
        entity_type: AuditEntityType,
        entity_id: str,
        changes: dict,
    ) -> None:
        async with self._db.session() as session:
            session.add(AuditLogRecord(
                action=action.value,
                entity_type=entity_type.value,
                entity_id=entity_id,
                changes=changes,
            ))
            await session.commit()
        logger.debug(f"Audit {action.value} {entity_type.value} {entity_id}")
