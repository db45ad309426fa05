"""ViewerState ORM — persisted shareable viewer states.

Invariants:
    - short_id is unique and indexed (permalink lookups)
    - encoded_state is the canonical token for state_json
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from skyview.db.base import Base


class ViewerStateRecord(Base):
    __tablename__ = "viewer_states"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    short_id: Mapped[str] = mapped_column(
        String(16), nullable=False, unique=True, index=True,
    )
    encoded_state: Mapped[str] = mapped_column(Text, nullable=False)
    state_json: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
