"""Catalog Label Resolver — SIMBAD cone search for nearby object labels.

Invariants:
    - get_nearby_labels() never raises for upstream problems: network errors,
      non-2xx status, invalid JSON, and missing columns all yield []
    - Exactly one upstream call per cache miss
    - Well-formed responses (including empty ones) are cached; failures are not

Design Decisions:
    - Labels are an enrichment: silent degradation over surfacing errors
"""

import json
import logging

import httpx

from skyview.core.catalog_query import (
    CatalogLabel,
    build_cone_query,
    clamp_cone,
    label_cache_key,
    parse_tap_response,
)
from skyview.services.mirrored_cache import MirroredCache

logger = logging.getLogger(__name__)


def encode_labels(labels: tuple[CatalogLabel, ...]) -> bytes:
    return json.dumps([label.to_dict() for label in labels]).encode("utf-8")


def decode_labels(raw: bytes) -> tuple[CatalogLabel, ...]:
    return tuple(CatalogLabel(**item) for item in json.loads(raw))


class CatalogLabelResolver:
    """Cached cone-search client for the TAP endpoint."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        cache: MirroredCache[tuple[CatalogLabel, ...]],
        tap_url: str,
        timeout_seconds: float = 8.0,
    ):
        self._http = http
        self._cache = cache
        self._tap_url = tap_url
        self._timeout = timeout_seconds

    async def get_nearby_labels(
        self, ra: float, dec: float, radius: float, limit: int,
    ) -> list[CatalogLabel]:
        radius, limit = clamp_cone(radius, limit)
        key = label_cache_key(ra, dec, radius, limit)

        cached = await self._cache.get(key)
        if cached is not None:
            return list(cached)

        labels = await self._query(ra, dec, radius, limit)
        if labels is None:
            return []
        await self._cache.set(key, tuple(labels))
        return labels

    async def _query(
        self, ra: float, dec: float, radius: float, limit: int,
    ) -> list[CatalogLabel] | None:
        params = {
            "REQUEST": "doQuery",
            "LANG": "ADQL",
            "FORMAT": "json",
            "QUERY": build_cone_query(ra, dec, radius, limit),
        }
        try:
            response = await self._http.get(
                self._tap_url, params=params, timeout=self._timeout,
            )
        except httpx.HTTPError as e:
            logger.warning(f"Catalog cone search failed: {type(e).__name__}: {e}")
            return None

        if not response.is_success:
            logger.warning(
                f"Catalog cone search returned status {response.status_code}",
                extra={"status_code": response.status_code},
            )
            return None

        try:
            payload = response.json()
        except ValueError:
            logger.warning("Catalog cone search returned invalid JSON")
            return None

        labels = parse_tap_response(payload, radius, limit)
        if labels is None:
            logger.warning("Catalog cone search response missing expected columns")
        return labels
