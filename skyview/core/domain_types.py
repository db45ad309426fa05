"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - ShortId is exactly 8 base62 characters
    - EncodedState is URL-safe base64 without padding
    - All valid option sets encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

ShortId = NewType("ShortId", str)
EncodedState = NewType("EncodedState", str)
CacheKey = NewType("CacheKey", str)


# ─── Enums ───────────────────────────────────────────────────────

class CutoutDetail(str, Enum):
    """Requested cutout fidelity — selects the resolution ladder."""
    STANDARD = "standard"
    HIGH = "high"
    MAX = "max"

    @classmethod
    def parse(cls, raw: str | None) -> "CutoutDetail":
        """Unknown or missing values fall back to STANDARD."""
        try:
            return cls((raw or "").strip().lower())
        except ValueError:
            return cls.STANDARD


class CutoutProvider(str, Enum):
    """Upstream image sources, in cascade order."""
    PRIMARY = "primary"
    SECONDARY = "secondary"


class AuditAction(str, Enum):
    CREATE = "create"


class AuditEntityType(str, Enum):
    VIEWER_STATE = "viewer_state"
    SNAPSHOT = "snapshot"
