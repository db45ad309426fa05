"""Distributed Cache — Redis adapter and its conditional lifecycle.

Invariants:
    - A client is constructed only when REDIS_CACHE_ENABLED and a host is configured
    - Production-like environments without REDIS_PASSWORD never connect (fail-closed)
    - A failed startup PING leaves the service memory-only; it never aborts startup
    - shutdown() tries graceful close, falls back to forced disconnect, never raises,
      always clears client + enabled flag; safe to call repeatedly or without start()

Design Decisions:
    - redis.asyncio behind the DistributedCache protocol: callers see get/put/close only
    - Client factory injectable so lifecycle rules are testable without a server
"""

import logging
from collections.abc import Callable

import redis.asyncio as redis

from skyview.config import Settings
from skyview.core.repository_protocols import DistributedCache

logger = logging.getLogger(__name__)


class RedisDistributedCache:
    """DistributedCache over a redis.asyncio client, with key namespacing."""

    def __init__(self, client: redis.Redis, prefix: str = "skyview:"):
        self.client = client
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def get(self, key: str) -> bytes | None:
        return await self.client.get(self._key(key))

    async def put(self, key: str, value: bytes, ttl_ms: int) -> None:
        await self.client.set(self._key(key), value, px=ttl_ms)

    async def ping(self) -> bool:
        return bool(await self.client.ping())

    async def close(self) -> None:
        await self.client.aclose()

    async def disconnect(self) -> None:
        await self.client.connection_pool.disconnect()


def build_redis_cache(settings: Settings) -> RedisDistributedCache:
    client = redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password or None,
        socket_connect_timeout=settings.redis_connect_timeout_ms / 1000,
        decode_responses=False,
    )
    return RedisDistributedCache(client, prefix=settings.redis_key_prefix)


class DistributedCacheLifecycle:
    """Owns the optional distributed cache client from startup to shutdown."""

    def __init__(
        self,
        settings: Settings,
        client_factory: Callable[[Settings], DistributedCache] = build_redis_cache,
    ):
        self._settings = settings
        self._client_factory = client_factory
        self.client: DistributedCache | None = None
        self.enabled = False

    def active_client(self) -> DistributedCache | None:
        return self.client if self.enabled else None

    async def start(self) -> None:
        settings = self._settings
        if not settings.redis_cache_enabled:
            logger.info("Distributed cache disabled by configuration")
            return
        if not settings.redis_host.strip():
            logger.warning("Distributed cache enabled but REDIS_HOST is empty; using memory only")
            return
        if settings.is_production_like and not settings.redis_password:
            logger.warning(
                "Distributed cache disabled: REDIS_PASSWORD is required "
                f"in {settings.app_env} mode",
            )
            return

        client = self._client_factory(settings)
        try:
            await client.ping()
        except Exception as e:
            logger.warning(f"Distributed cache unreachable, using memory only: {e}")
            await self._force_disconnect(client)
            return

        self.client = client
        self.enabled = True
        logger.info(
            f"Distributed cache connected: {settings.redis_host}:{settings.redis_port}",
        )

    async def health_check(self) -> bool:
        client = self.active_client()
        if client is None:
            return False
        try:
            return bool(await client.ping())
        except Exception as e:
            logger.error(f"Distributed cache health check failed: {e}")
            return False

    async def shutdown(self) -> None:
        client = self.client
        try:
            if client is not None:
                try:
                    await client.close()
                except Exception as e:
                    logger.warning(f"Distributed cache close failed, forcing disconnect: {e}")
                    await self._force_disconnect(client)
        finally:
            self.client = None
            self.enabled = False

    @staticmethod
    async def _force_disconnect(client: DistributedCache) -> None:
        try:
            await client.disconnect()
        except Exception as e:
            logger.error(f"Distributed cache forced disconnect failed: {e}")
