"""Catalog Label Resolver — silent degradation and cone-keyed caching.

Invariants:
    - Never raises for upstream problems; returns []
    - Identical cone → one upstream call; a different radius → a new call
"""

import httpx

from skyview.services.catalog_labels import CatalogLabelResolver
from tests.services.fakes import TAP_URL, make_label_cache

METADATA = [
    {"name": "main_id"}, {"name": "ra"}, {"name": "dec"},
    {"name": "otype_txt"}, {"name": "ang_dist"},
]
TAP_JSON = {
    "metadata": METADATA,
    "data": [
        ["M  87", 187.7059, 12.3911, "Seyfert_1", 0.0],
        ["NGC 4486A", 187.7408, 12.2706, "Galaxy", 0.06],
    ],
}


def _resolver(http, mirror=None):
    return CatalogLabelResolver(http, make_label_cache(mirror=mirror), TAP_URL)


async def test_returns_sorted_labels_with_confidence(http, upstream):
    upstream.handler = lambda request: httpx.Response(200, json=TAP_JSON)

    labels = await _resolver(http).get_nearby_labels(187.7, 12.39, 0.08, 10)

    assert [label.name for label in labels] == ["M  87", "NGC 4486A"]
    assert labels[0].confidence == 1.0
    assert labels[1].confidence == 0.25
    params = upstream.requests[0].url.params
    assert params["REQUEST"] == "doQuery"
    assert params["LANG"] == "ADQL"
    assert params["FORMAT"] == "json"
    assert "TOP 10" in params["QUERY"]


async def test_identical_cone_hits_cache(http, upstream):
    upstream.handler = lambda request: httpx.Response(200, json=TAP_JSON)
    resolver = _resolver(http)

    await resolver.get_nearby_labels(187.7, 12.39, 0.08, 10)
    await resolver.get_nearby_labels(187.7, 12.39, 0.08, 10)
    assert len(upstream.requests) == 1

    await resolver.get_nearby_labels(187.7, 12.39, 0.16, 10)
    assert len(upstream.requests) == 2


async def test_nearby_radii_get_their_own_slot_and_confidence(http, upstream):
    upstream.handler = lambda request: httpx.Response(200, json={
        "metadata": METADATA,
        "data": [["NGC 4478", 187.57, 12.33, "Galaxy", 0.01]],
    })
    resolver = _resolver(http)

    first = await resolver.get_nearby_labels(187.7, 12.39, 0.08001, 10)
    second = await resolver.get_nearby_labels(187.7, 12.39, 0.08004, 10)

    assert len(upstream.requests) == 2
    assert first[0].confidence == 0.875
    assert second[0].confidence == 0.8751


async def test_network_error_returns_empty(http, upstream):
    def handler(request):
        raise httpx.ConnectError("refused")

    upstream.handler = handler
    assert await _resolver(http).get_nearby_labels(1.0, 1.0, 0.1, 5) == []


async def test_non_success_status_returns_empty(http, upstream):
    upstream.handler = lambda request: httpx.Response(500, text="oops")
    assert await _resolver(http).get_nearby_labels(1.0, 1.0, 0.1, 5) == []


async def test_invalid_json_returns_empty(http, upstream):
    upstream.handler = lambda request: httpx.Response(200, text="<VOTABLE/>")
    assert await _resolver(http).get_nearby_labels(1.0, 1.0, 0.1, 5) == []


async def test_malformed_metadata_returns_empty_and_is_not_cached(http, upstream):
    upstream.handler = lambda request: httpx.Response(
        200, json={"metadata": [{"name": "main_id"}], "data": []},
    )
    resolver = _resolver(http)

    assert await resolver.get_nearby_labels(1.0, 1.0, 0.1, 5) == []
    assert await resolver.get_nearby_labels(1.0, 1.0, 0.1, 5) == []
    assert len(upstream.requests) == 2


async def test_empty_data_is_cached(http, upstream):
    upstream.handler = lambda request: httpx.Response(
        200, json={"metadata": METADATA, "data": []},
    )
    resolver = _resolver(http)

    assert await resolver.get_nearby_labels(1.0, 1.0, 0.1, 5) == []
    assert await resolver.get_nearby_labels(1.0, 1.0, 0.1, 5) == []
    assert len(upstream.requests) == 1


async def test_out_of_range_cone_is_clamped(http, upstream):
    upstream.handler = lambda request: httpx.Response(200, json=TAP_JSON)

    await _resolver(http).get_nearby_labels(1.0, 1.0, 45.0, 1000)

    query = upstream.requests[0].url.params["QUERY"]
    assert "TOP 100" in query
    assert "1.000000)) = 1" in query


async def test_distributed_failure_degrades_to_upstream(http, upstream, mirror):
    mirror.fail = True
    upstream.handler = lambda request: httpx.Response(200, json=TAP_JSON)

    labels = await _resolver(http, mirror=mirror).get_nearby_labels(187.7, 12.39, 0.08, 10)

    assert len(labels) == 2
