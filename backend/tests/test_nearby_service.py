import json
from datetime import timedelta

import pytest

from mapsy.models.places_model import ErrorCode, ErrorResponse
from mapsy.services.Cache_service import drain_background_writes
from mapsy.services.Lookup_service import PoiLookupService
from mapsy.services.Nearby_service import NearbyPlacesService
from mapsy.services.Quota_service import QuotaGuard
from conftest import FakeIsochroneProvider, FakePOIProvider, utcnow


@pytest.mark.asyncio
async def test_end_to_end_keeps_only_walkable_supermarkets(nearby_service):
    result = await nearby_service.get_nearby_places(40.0, -75.0, "203.0.113.7")

    assert result["forCoordinates"] == [40.0, -75.0]
    assert result["requestedBy"] == "203.0.113.7"
    ids = [poi["properties"]["place_id"] for poi in result["POIbyCategory"]["supermarket"]]
    assert ids == ["inside-1", "inside-2"]
    await drain_background_writes()


@pytest.mark.asyncio
async def test_result_written_to_both_tiers(nearby_service, fake_redis, fake_collection):
    result = await nearby_service.get_nearby_places(40.00012, -75.00049, "client")
    await drain_background_writes()

    assert json.loads(fake_redis.store["nearby-40.0--75.0"]) == result
    assert fake_collection.docs[0]["generalCoordinates"] == [40.0, -75.0]
    # The caller's precise coordinates are kept in the envelope
    assert fake_collection.docs[0]["forCoordinates"] == [40.00012, -75.00049]


@pytest.mark.asyncio
async def test_nearby_request_is_served_from_cache(nearby_service, poi_provider):
    await nearby_service.get_nearby_places(40.0001, -75.0001, "first")
    second = await nearby_service.get_nearby_places(39.9998, -74.9999, "second")

    assert len(poi_provider.calls) == 1
    assert second["requestedBy"] == "first"
    await drain_background_writes()


@pytest.mark.asyncio
async def test_sixth_unique_location_is_denied(nearby_service, poi_provider):
    for i in range(5):
        result = await nearby_service.get_nearby_places(40.0 + i * 0.01, -75.0, "client")
        assert not isinstance(result, ErrorResponse)

    denied = await nearby_service.get_nearby_places(41.0, -75.0, "client")

    assert isinstance(denied, ErrorResponse)
    assert denied.code == ErrorCode.UNIQUE_REQUESTS_LIMIT_EXCEEDED
    assert denied.retry_after == 3600
    assert len(poi_provider.calls) == 5
    await drain_background_writes()


@pytest.mark.asyncio
async def test_cache_hits_bypass_exhausted_quota(nearby_service, fake_redis):
    for i in range(5):
        await nearby_service.get_nearby_places(40.0 + i * 0.01, -75.0, "client")
    assert isinstance(await nearby_service.get_nearby_places(41.0, -75.0, "client"), ErrorResponse)

    cached = await nearby_service.get_nearby_places(40.0, -75.0, "client")

    assert not isinstance(cached, ErrorResponse)
    assert fake_redis.store["unique-requests-client"] == "5"
    await drain_background_writes()


@pytest.mark.asyncio
async def test_durable_only_entry_served_past_exhausted_quota(nearby_service, fake_redis, fake_collection, poi_provider):
    now = utcnow()
    entry = {"forCoordinates": [40.0, -75.0], "requestedBy": "earlier", "POIbyCategory": {"supermarket": []}}
    fake_collection.docs.append({
        **entry,
        "generalCoordinates": [40.0, -75.0],
        "createdAt": now,
        "expiresAt": now + timedelta(days=1),
    })
    fake_redis.store["unique-requests-client"] = "5"

    result = await nearby_service.get_nearby_places(40.0002, -75.0003, "client")

    assert result == entry
    assert poi_provider.calls == []
    assert json.loads(fake_redis.store["nearby-40.0--75.0"]) == entry
    assert fake_redis.store["unique-requests-client"] == "5"


@pytest.mark.asyncio
async def test_failed_lookup_is_not_cached_but_spends_quota(tiered_cache, redis_repo, fake_redis, fake_collection):
    service = NearbyPlacesService(
        tiered_cache,
        QuotaGuard(redis_repo, limit=5, window=3600),
        PoiLookupService(FakePOIProvider({"error": "Too Many Requests"}), FakeIsochroneProvider()),
    )

    result = await service.get_nearby_places(40.0, -75.0, "client")

    assert result.code == ErrorCode.PROVIDER_EXHAUSTED
    assert result.error == "Too Many Requests"
    assert "nearby-40.0--75.0" not in fake_redis.store
    assert fake_collection.docs == []
    assert fake_redis.store["unique-requests-client"] == "1"


@pytest.mark.asyncio
async def test_isochrone_failure_returns_no_partial_result(tiered_cache, redis_repo, poi_provider, fake_collection):
    service = NearbyPlacesService(
        tiered_cache,
        QuotaGuard(redis_repo, limit=5, window=3600),
        PoiLookupService(poi_provider, FakeIsochroneProvider(fail=True)),
    )

    result = await service.get_nearby_places(40.0, -75.0, "client")

    assert isinstance(result, ErrorResponse)
    assert result.code == ErrorCode.ISOCHRONE_ERROR
    assert fake_collection.docs == []
