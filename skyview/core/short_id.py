"""Short ID — random base62 identifiers for shareable viewer links."""

import secrets

from skyview.core.domain_types import ShortId

BASE62_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
SHORT_ID_LENGTH = 8
MAX_SHORT_ID_ATTEMPTS = 8


def random_short_id(length: int = SHORT_ID_LENGTH) -> ShortId:
    """Draw `length` symbols uniformly from the base62 alphabet (CSPRNG)."""
    return ShortId("".join(secrets.choice(BASE62_ALPHABET) for _ in range(length)))


def is_short_id(value: str) -> bool:
    return (
        len(value) == SHORT_ID_LENGTH
        and all(ch in BASE62_ALPHABET for ch in value)
    )
