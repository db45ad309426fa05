"""ORM Models — SQLAlchemy declarative models for persisted viewer entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - All models imported here so Base.metadata is complete for create_all and alembic
"""

from skyview.models.viewer_state import ViewerStateRecord  # noqa: F401
from skyview.models.viewer_snapshot import ViewerSnapshotRecord  # noqa: F401
from skyview.models.audit_log import AuditLogRecord  # noqa: F401
