"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single immutable instance per process
    - snapshot_retention_days is never below 7 (lower values are clamped up)

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - frozen=True: settings are built once at startup and passed explicitly;
      tests construct Settings(...) directly instead of mutating os.environ
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from skyview.core.cutout_plan import SecondaryProviderConfig
from skyview.core.snapshot import effective_retention_days

PRODUCTION_LIKE_ENVIRONMENTS = frozenset({"production", "prod", "staging"})


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, frozen=True, extra="ignore",
    )

    app_env: str = "development"

    # Database
    database_url: str = "postgresql+asyncpg://skyview:skyview@db:5432/skyview"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres provides postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Cutout providers
    cutout_primary_url: str = (
        "https://alasky.cds.unistra.fr/hips-image-services/hips2fits"
    )
    cutout_request_timeout_seconds: float = 12.0
    cutout_secondary_enabled: bool = False
    cutout_secondary_url_template: str = ""
    cutout_secondary_api_key: str = ""
    cutout_secondary_api_key_header: str = ""
    cutout_secondary_api_key_prefix: str = ""
    cutout_secondary_api_key_query_param: str = ""

    # Caches
    cutout_cache_ttl_ms: int = 300_000
    cutout_cache_max_entries: int = 64
    nearby_labels_cache_ttl_ms: int = 600_000
    nearby_labels_cache_max_entries: int = 512

    # Catalog
    catalog_tap_url: str = "https://simbad.cds.unistra.fr/simbad/sim-tap/sync"
    catalog_request_timeout_seconds: float = 8.0

    # Snapshots
    snapshot_retention_days: int = 30
    snapshot_storage_dir: str = "storage/snapshots"
    snapshot_max_bytes: int = 5 * 1024 * 1024

    @field_validator("snapshot_retention_days")
    @classmethod
    def enforce_retention_floor(cls, v: int) -> int:
        return effective_retention_days(v)

    # Distributed cache
    redis_cache_enabled: bool = False
    redis_host: str = "127.0.0.1"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_connect_timeout_ms: int = 2000
    redis_key_prefix: str = "skyview:"

    # API
    cors_origins: list[str] = ["http://localhost:4200"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def is_production_like(self) -> bool:
        return self.app_env.strip().lower() in PRODUCTION_LIKE_ENVIRONMENTS

    @property
    def secondary_provider(self) -> SecondaryProviderConfig:
        return SecondaryProviderConfig(
            enabled=self.cutout_secondary_enabled,
            url_template=self.cutout_secondary_url_template,
            api_key=self.cutout_secondary_api_key,
            api_key_header=self.cutout_secondary_api_key_header,
            api_key_prefix=self.cutout_secondary_api_key_prefix,
            api_key_query_param=self.cutout_secondary_api_key_query_param,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
