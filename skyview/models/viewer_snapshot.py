"""ViewerSnapshot ORM — metadata for PNG snapshots stored on disk.

Invariants:
    - file_name is unique; the binary lives in snapshot storage, not the database
    - short_id is a soft reference (no FK): snapshots may precede a saved state
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from skyview.db.base import Base


class ViewerSnapshotRecord(Base):
    __tablename__ = "viewer_snapshots"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    file_name: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    mime_type: Mapped[str] = mapped_column(String(64), nullable=False)
    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False)
    short_id: Mapped[str | None] = mapped_column(String(16), nullable=True)
    state_json: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
