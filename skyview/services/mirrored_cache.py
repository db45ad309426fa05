"""Mirrored Cache — local TTL cache with an optional distributed write-through mirror.

Invariants:
    - A live local entry always wins; the distributed cache is consulted only on local miss
    - Writes land locally first, then in the mirror (same TTL)
    - Distributed failures are logged and treated as misses — never raised to callers
    - Values crossing the mirror go through the injected encode/decode pair

Design Decisions:
    - The mirror is looked up through a callable on every access so a lifecycle
      that starts, stops, or disables itself is observed without rewiring
    - No cross-process invalidation: local state is authoritative within a process
"""

import logging
from collections.abc import Callable
from typing import Generic, TypeVar

from skyview.core.repository_protocols import DistributedCache
from skyview.core.ttl_cache import TTLCache

logger = logging.getLogger(__name__)

V = TypeVar("V")


class MirroredCache(Generic[V]):
    """One logical cache namespace (e.g. cutouts or labels)."""

    def __init__(
        self,
        name: str,
        local: TTLCache[V],
        ttl_ms: int,
        encode: Callable[[V], bytes],
        decode: Callable[[bytes], V],
        mirror: Callable[[], DistributedCache | None] = lambda: None,
    ):
        self.name = name
        self.local = local
        self.ttl_ms = ttl_ms
        self._encode = encode
        self._decode = decode
        self._mirror = mirror

    def _namespaced(self, key: str) -> str:
        return f"{self.name}:{key}"

    async def get(self, key: str) -> V | None:
        value = self.local.get(key)
        if value is not None:
            return value

        mirror = self._mirror()
        if mirror is None:
            return None
        try:
            raw = await mirror.get(self._namespaced(key))
            if raw is None:
                return None
            value = self._decode(raw)
        except Exception as e:
            logger.warning(
                f"Distributed cache read failed ({self.name}): {e}",
                extra={"cache": self.name},
            )
            return None

        self.local.set(key, value, self.ttl_ms / 1000)
        return value

    async def set(self, key: str, value: V) -> None:
        self.local.set(key, value, self.ttl_ms / 1000)

        mirror = self._mirror()
        if mirror is None or self.ttl_ms <= 0:
            return
        try:
            await mirror.put(self._namespaced(key), self._encode(value), self.ttl_ms)
        except Exception as e:
            logger.warning(
                f"Distributed cache write failed ({self.name}): {e}",
                extra={"cache": self.name},
            )
