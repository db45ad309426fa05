"""Cutout Telemetry — passive counters for the cutout cascade.

Invariants:
    - Counters only ever increase
    - snapshot() returns an immutable copy; later increments never mutate it
"""

from dataclasses import asdict, dataclass
from datetime import datetime, timezone


@dataclass(frozen=True)
class TelemetrySnapshot:
    requests_total: int
    success_total: int
    provider_attempts_total: int
    provider_fallback_total: int
    last_success_at: datetime | None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["last_success_at"] = (
            self.last_success_at.isoformat() if self.last_success_at else None
        )
        return data


class CutoutTelemetry:
    """Mutable counters owned by the cutout fetcher."""

    def __init__(self):
        self._requests = 0
        self._successes = 0
        self._attempts = 0
        self._fallbacks = 0
        self._last_success_at: datetime | None = None

    def record_request(self) -> None:
        self._requests += 1

    def record_attempt(self) -> None:
        self._attempts += 1

    def record_fallback(self) -> None:
        self._fallbacks += 1

    def record_success(self, at: datetime | None = None) -> None:
        self._successes += 1
        self._last_success_at = at or datetime.now(timezone.utc)

    def snapshot(self) -> TelemetrySnapshot:
        return TelemetrySnapshot(
            requests_total=self._requests,
            success_total=self._successes,
            provider_attempts_total=self._attempts,
            provider_fallback_total=self._fallbacks,
            last_success_at=self._last_success_at,
        )
