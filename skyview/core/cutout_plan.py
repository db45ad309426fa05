"""Cutout Plan — pure planning for the resolution/provider cascade.

Invariants:
    - Ladders are strictly descending; width == height at every tier
    - Cache keys are resolution-specific and fixed-precision
    - Provider requests are plain data (url, params, headers); no IO here
    - File names contain only [A-Za-z0-9_-] plus the .fits extension

Design Decisions:
    - Template placeholders replaced with str.replace, not str.format: provider
      templates may legitimately contain other braces
    - Secondary API key applied as header and/or query parameter, whichever
      names are configured
"""

import re
from dataclasses import dataclass, field
from urllib.parse import quote

from skyview.core.domain_types import CacheKey, CutoutDetail, CutoutProvider

MAX_DETAIL_LADDER: tuple[int, ...] = (3072, 2560, 2048, 1024, 512, 256, 128)
DEFAULT_START_RESOLUTION = 2048
DEFAULT_HIPS_SURVEY = "CDS/P/DSS2/color"
DEFAULT_CONTENT_TYPE = "application/fits"
FITS_ACCEPT = "application/fits, application/octet-stream;q=0.9"

_UNSAFE_FILE_CHARS = re.compile(r"[^a-zA-Z0-9_-]+")


@dataclass(frozen=True)
class ProviderRequest:
    """One upstream GET, fully resolved."""
    provider: CutoutProvider
    url: str
    params: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SecondaryProviderConfig:
    enabled: bool = False
    url_template: str = ""
    api_key: str = ""
    api_key_header: str = ""
    api_key_prefix: str = ""
    api_key_query_param: str = ""

    @property
    def active(self) -> bool:
        return self.enabled and bool(self.url_template.strip())


def resolution_ladder(detail: CutoutDetail) -> tuple[int, ...]:
    """Ordered tiers to attempt, largest first."""
    if detail is CutoutDetail.MAX:
        return MAX_DETAIL_LADDER
    start = MAX_DETAIL_LADDER.index(DEFAULT_START_RESOLUTION)
    return MAX_DETAIL_LADDER[start:]


def cutout_cache_key(
    ra: float, dec: float, fov: float, survey: str, width: int, height: int,
) -> CacheKey:
    return CacheKey(
        f"cutout|{ra:.6f}|{dec:.6f}|{fov:.6f}|{survey.strip()}|{width}|{height}"
    )


def normalize_survey(survey: str) -> str:
    """Map a survey name onto a CDS HiPS identifier."""
    trimmed = survey.strip()
    if not trimmed:
        return DEFAULT_HIPS_SURVEY
    if trimmed.startswith("CDS/"):
        return trimmed
    return f"CDS/{trimmed}"


def build_primary_request(
    base_url: str,
    ra: float,
    dec: float,
    fov: float,
    survey: str,
    width: int,
    height: int,
) -> ProviderRequest:
    """hips2fits query; fov is passed in degrees."""
    return ProviderRequest(
        provider=CutoutProvider.PRIMARY,
        url=base_url,
        params={
            "hips": normalize_survey(survey),
            "format": "fits",
            "projection": "TAN",
            "ra": repr(float(ra)),
            "dec": repr(float(dec)),
            "fov": repr(float(fov)),
            "width": str(width),
            "height": str(height),
        },
        headers={"Accept": FITS_ACCEPT},
    )


def build_secondary_request(
    config: SecondaryProviderConfig,
    ra: float,
    dec: float,
    fov: float,
    survey: str,
    width: int,
    height: int,
) -> ProviderRequest | None:
    """Resolve the secondary template, or None when the provider is inactive."""
    if not config.active:
        return None

    substitutions = {
        "{ra}": repr(float(ra)),
        "{dec}": repr(float(dec)),
        "{fov}": repr(float(fov)),
        "{survey}": quote(survey.strip(), safe="/"),
        "{width}": str(width),
        "{height}": str(height),
    }
    url = config.url_template.strip()
    for placeholder, value in substitutions.items():
        url = url.replace(placeholder, value)

    headers = {"Accept": FITS_ACCEPT}
    params: dict[str, str] = {}
    if config.api_key:
        if config.api_key_header:
            headers[config.api_key_header] = f"{config.api_key_prefix}{config.api_key}"
        if config.api_key_query_param:
            params[config.api_key_query_param] = config.api_key

    return ProviderRequest(
        provider=CutoutProvider.SECONDARY, url=url, params=params, headers=headers,
    )


def cutout_file_name(label: str | None, ra: float, dec: float) -> str:
    """Slugified label + .fits; coordinates when no usable label is given."""
    stem = ""
    if label:
        stem = _UNSAFE_FILE_CHARS.sub("-", label.strip()).strip("-")
    if not stem:
        stem = f"ra{ra:.4f}_dec{dec:.4f}"
    return f"{stem}.fits"
