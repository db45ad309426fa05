"""Cutout Fetcher — resolution ladder × provider fallback cascade with caching.

Invariants:
    - requests_total increments exactly once per fetch(), whatever the outcome
    - Cache is consulted only at the default tier, and never for max detail
    - Telemetry is private; callers read it through telemetry_snapshot()
    - Attempts are sequential: for each tier, primary then (if active) secondary
    - provider_attempts_total increments per upstream call; provider_fallback_total
      only when the secondary supplied the successful response
    - First success stops the cascade and is cached under its tier's key
    - Exhaustion raises UpstreamUnavailableError; failures are never cached

Design Decisions:
    - Sequential cascade: reproducible attempt order, no quota wasted on parallel fan-out
    - Transport errors (timeouts, connection resets) count as failed attempts, not aborts
    - A 2xx with an empty body is a failure (providers return empty bodies when degraded)
"""

import base64
import json
import logging
from dataclasses import dataclass

import httpx

from skyview.core.cutout_plan import (
    DEFAULT_CONTENT_TYPE,
    DEFAULT_START_RESOLUTION,
    ProviderRequest,
    SecondaryProviderConfig,
    build_primary_request,
    build_secondary_request,
    cutout_cache_key,
    cutout_file_name,
    resolution_ladder,
)
from skyview.core.domain_types import CutoutDetail, CutoutProvider
from skyview.core.errors import ErrorContext, UpstreamUnavailableError
from skyview.core.telemetry import CutoutTelemetry, TelemetrySnapshot
from skyview.core.viewer_state import validate_coordinates
from skyview.services.mirrored_cache import MirroredCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CutoutRequest:
    ra: float
    dec: float
    fov: float
    survey: str
    label: str | None = None
    detail: CutoutDetail = CutoutDetail.STANDARD


@dataclass(frozen=True)
class CutoutPayload:
    """Cached unit: the provider's bytes and media type."""
    buffer: bytes
    content_type: str = DEFAULT_CONTENT_TYPE


@dataclass(frozen=True)
class CutoutResult:
    file_name: str
    buffer: bytes
    content_type: str


def encode_cutout_payload(payload: CutoutPayload) -> bytes:
    return json.dumps({
        "content_type": payload.content_type,
        "buffer": base64.b64encode(payload.buffer).decode("ascii"),
    }).encode("utf-8")


def decode_cutout_payload(raw: bytes) -> CutoutPayload:
    data = json.loads(raw)
    return CutoutPayload(
        buffer=base64.b64decode(data["buffer"]),
        content_type=data.get("content_type") or DEFAULT_CONTENT_TYPE,
    )


class CutoutFetcher:
    """Downloads cutouts, degrading resolution and provider until one succeeds."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        cache: MirroredCache[CutoutPayload],
        telemetry: CutoutTelemetry,
        primary_url: str,
        secondary: SecondaryProviderConfig | None = None,
        timeout_seconds: float = 12.0,
    ):
        self._http = http
        self._cache = cache
        self._telemetry = telemetry
        self._primary_url = primary_url
        self._secondary = secondary or SecondaryProviderConfig()
        self._timeout = timeout_seconds

    async def fetch(self, request: CutoutRequest) -> CutoutResult:
        self._telemetry.record_request()
        validate_coordinates(request.ra, request.dec, request.fov, request.survey)

        ladder = resolution_ladder(request.detail)
        file_name = cutout_file_name(request.label, request.ra, request.dec)

        cached = await self._lookup_cached(request)
        if cached is not None:
            self._telemetry.record_success()
            return CutoutResult(file_name, cached.buffer, cached.content_type)

        attempts = 0
        last_error = "no response from provider"
        for size in ladder:
            for provider_request in self._provider_requests(request, size):
                attempts += 1
                self._telemetry.record_attempt()
                payload, error = await self._attempt(provider_request, size, attempts)
                if payload is None:
                    last_error = error
                    continue

                if provider_request.provider is CutoutProvider.SECONDARY:
                    self._telemetry.record_fallback()
                self._telemetry.record_success()
                await self._cache.set(
                    cutout_cache_key(
                        request.ra, request.dec, request.fov, request.survey, size, size,
                    ),
                    payload,
                )
                logger.info(
                    f"Cutout fetched at {size}px from {provider_request.provider.value}",
                    extra={
                        "survey": request.survey,
                        "provider": provider_request.provider.value,
                        "resolution": size,
                        "attempt": attempts,
                    },
                )
                return CutoutResult(file_name, payload.buffer, payload.content_type)

        raise UpstreamUnavailableError(
            last_error, attempts, context=ErrorContext(survey=request.survey),
        )

    def telemetry_snapshot(self) -> TelemetrySnapshot:
        return self._telemetry.snapshot()

    async def _lookup_cached(self, request: CutoutRequest) -> CutoutPayload | None:
        """Default-tier cache hit, or None. Max detail always walks the cascade."""
        if request.detail == CutoutDetail.MAX:
            return None
        return await self._cache.get(cutout_cache_key(
            request.ra, request.dec, request.fov, request.survey,
            DEFAULT_START_RESOLUTION, DEFAULT_START_RESOLUTION,
        ))

    def _provider_requests(self, request: CutoutRequest, size: int):
        """Yield primary, then secondary (when active), for one tier."""
        yield build_primary_request(
            self._primary_url,
            request.ra, request.dec, request.fov, request.survey, size, size,
        )
        secondary = build_secondary_request(
            self._secondary,
            request.ra, request.dec, request.fov, request.survey, size, size,
        )
        if secondary is not None:
            yield secondary

    async def _attempt(
        self, provider_request: ProviderRequest, size: int, attempt: int,
    ) -> tuple[CutoutPayload | None, str]:
        """Issue one upstream GET; returns (payload, "") or (None, reason)."""
        provider = provider_request.provider.value
        try:
            response = await self._http.get(
                provider_request.url,
                params=provider_request.params or None,
                headers=provider_request.headers,
                timeout=self._timeout,
            )
        except httpx.HTTPError as e:
            reason = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__
            logger.warning(
                f"Cutout fetch failed ({provider}, {size}px): {reason}",
                extra={"provider": provider, "resolution": size, "attempt": attempt},
            )
            return None, reason

        if not response.is_success:
            reason = f"status {response.status_code}"
        elif not response.content:
            reason = "empty payload"
        else:
            content_type = (
                response.headers.get("content-type", "").split(";")[0].strip()
                or DEFAULT_CONTENT_TYPE
            )
            return CutoutPayload(response.content, content_type), ""

        logger.warning(
            f"Cutout fetch failed ({provider}, {size}px): {reason}",
            extra={
                "provider": provider,
                "resolution": size,
                "attempt": attempt,
                "status_code": response.status_code,
            },
        )
        return None, reason
