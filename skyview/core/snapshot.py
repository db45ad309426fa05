"""Snapshot Policy — PNG data-URL decoding and retention rules.

Invariants:
    - Only `data:image/png;base64,` payloads are accepted
    - Decoded payload is non-empty and at most max_bytes
    - Effective retention is never below MIN_RETENTION_DAYS
"""

import base64
import binascii

from skyview.core.errors import InvalidSnapshotError

PNG_DATA_URL_PREFIX = "data:image/png;base64,"
PNG_MIME_TYPE = "image/png"
DEFAULT_MAX_SNAPSHOT_BYTES = 5 * 1024 * 1024
MIN_RETENTION_DAYS = 7


def effective_retention_days(configured: int) -> int:
    return max(MIN_RETENTION_DAYS, configured)


def decode_png_data_url(
    data_url: str, max_bytes: int = DEFAULT_MAX_SNAPSHOT_BYTES,
) -> bytes:
    """Return the PNG bytes carried by a data URL or raise InvalidSnapshotError."""
    if not isinstance(data_url, str) or not data_url.startswith(PNG_DATA_URL_PREFIX):
        raise InvalidSnapshotError("image_data_url must be a PNG data URL.")

    encoded = data_url[len(PNG_DATA_URL_PREFIX):].strip()
    try:
        png = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidSnapshotError("Snapshot payload is not valid base64.") from e

    if not png:
        raise InvalidSnapshotError("Snapshot payload is empty.")
    if len(png) > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise InvalidSnapshotError(f"Snapshot exceeds {limit_mb}MB size limit.")
    return png
