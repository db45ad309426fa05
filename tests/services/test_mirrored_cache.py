"""Mirrored Cache — local-first reads, write-through, absorbed mirror failures."""

from skyview.core.ttl_cache import TTLCache
from skyview.services.mirrored_cache import MirroredCache


def _cache(mirror, ttl_ms=1000):
    return MirroredCache(
        "demo", TTLCache(), ttl_ms,
        encode=lambda v: v.encode(), decode=lambda raw: raw.decode(),
        mirror=lambda: mirror,
    )


async def test_set_writes_local_and_mirror(mirror):
    cache = _cache(mirror)
    await cache.set("k", "v")
    assert cache.local.get("k") == "v"
    assert mirror.store == {"demo:k": b"v"}
    assert mirror.puts == [("demo:k", 1000)]


async def test_local_hit_wins_over_mirror(mirror):
    cache = _cache(mirror)
    await cache.set("k", "local")
    mirror.store["demo:k"] = b"remote"
    assert await cache.get("k") == "local"


async def test_mirror_hit_reseeds_local(mirror):
    mirror.store["demo:k"] = b"remote"
    cache = _cache(mirror)
    assert await cache.get("k") == "remote"
    assert cache.local.get("k") == "remote"


async def test_mirror_failures_are_misses(mirror):
    mirror.fail = True
    cache = _cache(mirror)
    await cache.set("k", "v")
    cache.local.clear()
    assert await cache.get("k") is None


async def test_undecodable_mirror_value_is_miss(mirror):
    mirror.store["demo:k"] = b"\xff\xfe"
    assert await _cache(mirror).get("k") is None


async def test_no_mirror_is_memory_only():
    cache = _cache(None)
    await cache.set("k", "v")
    assert await cache.get("k") == "v"
    assert await cache.get("missing") is None
