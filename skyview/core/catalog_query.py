"""Catalog Query — cone-search ADQL construction and tolerant TAP response parsing.

Invariants:
    - Pure functions: no IO, no async
    - parse_tap_response returns None for a malformed payload and a (possibly empty)
      list for a well-formed one; it never raises
    - confidence ∈ [0, 1], non-increasing in ang_dist; results sorted descending
    - label_cache_key rounds coordinates to 4 decimals; the exact radius and limit
      always distinguish keys, so cached confidences match the radius they were scored at

Design Decisions:
    - Columns resolved by name from `metadata`, not by position: upstream column
      order is not part of the contract
    - None vs []: callers cache well-formed empty results but not failures
"""

import math
from dataclasses import asdict, dataclass
from typing import Any

from skyview.core.domain_types import CacheKey

REQUIRED_COLUMNS = ("main_id", "ra", "dec", "otype_txt", "ang_dist")

MIN_RADIUS_DEG = 0.001
MAX_RADIUS_DEG = 1.0
MIN_LIMIT = 1
MAX_LIMIT = 100


@dataclass(frozen=True)
class CatalogLabel:
    name: str
    ra: float
    dec: float
    object_type: str
    confidence: float

    def to_dict(self) -> dict:
        return asdict(self)


def clamp_cone(radius: float, limit: int) -> tuple[float, int]:
    """Bound user-supplied cone parameters before keying or querying."""
    if not isinstance(radius, (int, float)) or not math.isfinite(radius):
        radius = MIN_RADIUS_DEG
    if not isinstance(limit, (int, float)) or not math.isfinite(limit):
        limit = MIN_LIMIT
    radius = min(max(float(radius), MIN_RADIUS_DEG), MAX_RADIUS_DEG)
    limit = min(max(int(limit), MIN_LIMIT), MAX_LIMIT)
    return radius, limit


def label_cache_key(ra: float, dec: float, radius: float, limit: int) -> CacheKey:
    """Coordinates share a slot at 4 decimals; radius is keyed exactly as queried."""
    return CacheKey(f"labels|{ra:.4f}|{dec:.4f}|{radius!r}|{limit}")


def build_cone_query(ra: float, dec: float, radius: float, limit: int) -> str:
    """ADQL cone search over SIMBAD `basic`, nearest first."""
    point = f"POINT('ICRS', {ra:.6f}, {dec:.6f})"
    return (
        f"SELECT TOP {int(limit)} main_id, ra, dec, otype_txt, "
        f"DISTANCE(POINT('ICRS', ra, dec), {point}) AS ang_dist "
        f"FROM basic "
        f"WHERE CONTAINS(POINT('ICRS', ra, dec), "
        f"CIRCLE('ICRS', {ra:.6f}, {dec:.6f}, {radius:.6f})) = 1 "
        f"ORDER BY ang_dist ASC"
    )


def compute_confidence(ang_dist: float, radius: float) -> float:
    """Linear falloff from 1.0 at the cone centre to 0.0 at its edge."""
    if radius <= 0:
        return 0.0
    return round(max(0.0, 1.0 - ang_dist / radius), 4)


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _column_index(metadata: Any) -> dict[str, int] | None:
    if not isinstance(metadata, list):
        return None
    index: dict[str, int] = {}
    for position, column in enumerate(metadata):
        if isinstance(column, dict) and isinstance(column.get("name"), str):
            index.setdefault(column["name"].lower(), position)
    if any(name not in index for name in REQUIRED_COLUMNS):
        return None
    return index


def _parse_row(
    row: Any, index: dict[str, int], radius: float,
) -> CatalogLabel | None:
    if not isinstance(row, (list, tuple)) or len(row) <= max(index.values()):
        return None
    name = row[index["main_id"]]
    ra = _as_float(row[index["ra"]])
    dec = _as_float(row[index["dec"]])
    ang_dist = _as_float(row[index["ang_dist"]])
    if not isinstance(name, str) or not name.strip():
        return None
    if ra is None or dec is None or ang_dist is None:
        return None
    object_type = row[index["otype_txt"]]
    return CatalogLabel(
        name=name.strip(),
        ra=ra,
        dec=dec,
        object_type=object_type.strip() if isinstance(object_type, str) else "Unknown",
        confidence=compute_confidence(ang_dist, radius),
    )


def parse_tap_response(
    payload: Any, radius: float, limit: int,
) -> list[CatalogLabel] | None:
    """Parse a TAP JSON result ({metadata, data}) into sorted labels.

    Returns None when the payload does not honour the column contract.
    """
    if not isinstance(payload, dict):
        return None
    index = _column_index(payload.get("metadata"))
    if index is None:
        return None
    rows = payload.get("data")
    if not isinstance(rows, list):
        return None

    labels = [
        label for label in (_parse_row(row, index, radius) for row in rows)
        if label is not None
    ]
    labels.sort(key=lambda label: (-label.confidence, label.name))
    return labels[:limit]
