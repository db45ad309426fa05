"""TTL Cache — in-memory key/value store with per-entry expiry.

Invariants:
    - get() returns a value only while expires_at > now; expired entries are removed on access
    - set() stores with expires_at = now + ttl_seconds
    - With max_entries set, len(cache) never exceeds it (oldest insertion evicted first)
    - No background sweeping: sweep() exists for callers that want to reclaim memory

Design Decisions:
    - Injectable clock (defaults to time.monotonic) so expiry is testable without sleeping
    - Not thread-safe: mutated only from the asyncio event loop
"""

import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    value: V
    expires_at: float


class TTLCache(Generic[V]):
    """Lazily-expiring cache with an optional capacity bound."""

    def __init__(
        self,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1 when set")
        self._entries: OrderedDict[str, CacheEntry[V]] = OrderedDict()
        self._max_entries = max_entries
        self._clock = clock

    def get(self, key: str) -> V | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: V, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            # A non-positive TTL would be expired on the next read.
            self._entries.pop(key, None)
            return
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(value, self._clock() + ttl_seconds)
        if self._max_entries is not None:
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def sweep(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
