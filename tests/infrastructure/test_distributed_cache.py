"""Distributed cache lifecycle — conditional construction, fail-closed, teardown.

Invariants:
    - No client unless enabled with a host; none in production without a password
    - shutdown never raises and always clears client + enabled
"""

from skyview.config import Settings
from skyview.infrastructure.distributed_cache import (
    DistributedCacheLifecycle, RedisDistributedCache,
)
from tests.services.fakes import FakeDistributedCache


def _settings(**overrides) -> Settings:
    base = {"redis_cache_enabled": True, "redis_host": "cache.test"}
    return Settings(_env_file=None, **{**base, **overrides})


class RecordingFactory:
    def __init__(self, client=None):
        self.client = client or FakeDistributedCache()
        self.calls = 0

    def __call__(self, settings):
        self.calls += 1
        return self.client


async def test_disabled_never_builds_client():
    factory = RecordingFactory()
    lifecycle = DistributedCacheLifecycle(_settings(redis_cache_enabled=False), factory)

    await lifecycle.start()

    assert factory.calls == 0
    assert lifecycle.active_client() is None


async def test_empty_host_never_builds_client():
    factory = RecordingFactory()
    lifecycle = DistributedCacheLifecycle(_settings(redis_host="  "), factory)
    await lifecycle.start()
    assert factory.calls == 0


async def test_production_without_password_fails_closed():
    factory = RecordingFactory()
    lifecycle = DistributedCacheLifecycle(_settings(app_env="production"), factory)

    await lifecycle.start()

    assert factory.calls == 0
    assert lifecycle.enabled is False


async def test_production_with_password_connects():
    factory = RecordingFactory()
    lifecycle = DistributedCacheLifecycle(
        _settings(app_env="production", redis_password="s3cret"), factory,
    )

    await lifecycle.start()

    assert lifecycle.enabled is True
    assert lifecycle.active_client() is factory.client
    assert await lifecycle.health_check() is True


async def test_failed_ping_leaves_memory_only():
    client = FakeDistributedCache()
    client.ping_ok = False
    lifecycle = DistributedCacheLifecycle(_settings(), RecordingFactory(client))

    await lifecycle.start()

    assert lifecycle.active_client() is None
    assert client.disconnected is True
    assert await lifecycle.health_check() is False


async def test_shutdown_closes_gracefully():
    factory = RecordingFactory()
    lifecycle = DistributedCacheLifecycle(_settings(), factory)
    await lifecycle.start()

    await lifecycle.shutdown()

    assert factory.client.closed is True
    assert factory.client.disconnected is False
    assert lifecycle.client is None
    assert lifecycle.enabled is False


async def test_shutdown_falls_back_to_disconnect():
    client = FakeDistributedCache()
    client.close_error = RuntimeError("quit failed")
    lifecycle = DistributedCacheLifecycle(_settings(), RecordingFactory(client))
    await lifecycle.start()

    await lifecycle.shutdown()

    assert client.disconnected is True
    assert lifecycle.client is None


async def test_shutdown_swallows_double_failure():
    client = FakeDistributedCache()
    client.close_error = RuntimeError("quit failed")
    client.disconnect_error = RuntimeError("disconnect failed")
    lifecycle = DistributedCacheLifecycle(_settings(), RecordingFactory(client))
    await lifecycle.start()

    await lifecycle.shutdown()

    assert lifecycle.client is None
    assert lifecycle.enabled is False


async def test_shutdown_without_start_is_noop_and_idempotent():
    lifecycle = DistributedCacheLifecycle(_settings(), RecordingFactory())
    await lifecycle.shutdown()
    await lifecycle.shutdown()
    assert lifecycle.client is None


class FakeRedis:
    def __init__(self):
        self.data = {}
        self.set_calls = []

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, px=None):
        self.set_calls.append((key, px))
        self.data[key] = value

    async def ping(self):
        return True


async def test_redis_adapter_prefixes_keys_and_sets_ttl():
    redis_client = FakeRedis()
    cache = RedisDistributedCache(redis_client, prefix="skyview:")

    await cache.put("cutout:k", b"v", 5000)

    assert redis_client.set_calls == [("skyview:cutout:k", 5000)]
    assert await cache.get("cutout:k") == b"v"
    assert await cache.ping() is True
