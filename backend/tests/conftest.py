"""
Shared fakes for the Mapsy backend tests.

FakeRedis and FakeCollection implement just the calls the repositories make,
so tests never need a running Redis or MongoDB.
"""
from datetime import datetime, timezone

import pytest

from mapsy.core.geo_providers import BaseIsochroneProvider, BasePOIProvider, IsochroneError
from mapsy.repos.cache_repo import RedisRepository
from mapsy.repos.places_repo import PlacesRepository
from mapsy.services.Cache_service import TieredCache
from mapsy.services.Lookup_service import PoiLookupService
from mapsy.services.Nearby_service import NearbyPlacesService
from mapsy.services.Quota_service import QuotaGuard


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.expiry = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = str(value)
        self.expiry[key] = ex

    async def incr(self, key):
        self.store[key] = str(int(self.store.get(key, 0)) + 1)
        return int(self.store[key])

    async def expire(self, key, ttl):
        if key in self.store:
            self.expiry[key] = ttl

    def drop(self, key):
        """Simulates Redis evicting a key once its TTL runs out."""
        self.store.pop(key, None)
        self.expiry.pop(key, None)

    async def ping(self):
        return True

    async def aclose(self):
        pass

    async def ttl(self, key):
        if key not in self.store:
            return -2
        return self.expiry.get(key) or -1


class FakeCollection:
    def __init__(self):
        self.docs = []
        self.find_calls = 0

    async def find_one(self, query, projection=None):
        self.find_calls += 1
        for doc in self.docs:
            if doc["generalCoordinates"] != query["generalCoordinates"]:
                continue
            if doc["expiresAt"] <= query["expiresAt"]["$gt"]:
                continue
            if projection:
                return {k: v for k, v in doc.items() if projection.get(k)}
            return dict(doc)
        return None

    async def insert_one(self, doc):
        self.docs.append(dict(doc))


class FailingCollection:
    async def find_one(self, query, projection=None):
        raise ConnectionError("mongo down")

    async def insert_one(self, doc):
        raise ConnectionError("mongo down")


def make_feature(place_id, lon, lat, categories):
    return {
        "type": "Feature",
        "properties": {"place_id": place_id, "name": place_id, "categories": list(categories)},
        "geometry": {"type": "Point", "coordinates": [lon, lat]},
    }


# Roughly a 1 km box around (40.0, -75.0), left open on purpose
WALK_POLYGON = [
    [-75.01, 39.99],
    [-75.01, 40.01],
    [-74.99, 40.01],
    [-74.99, 39.99],
]


class FakePOIProvider(BasePOIProvider):
    def __init__(self, body):
        self.body = body
        self.calls = []

    async def search(self, lat, lon, categories):
        self.calls.append((lat, lon, list(categories)))
        return self.body

    def get_provider_name(self):
        return "Fake POI"


class FakeIsochroneProvider(BaseIsochroneProvider):
    def __init__(self, polygon=None, fail=False):
        self.polygon = polygon if polygon is not None else WALK_POLYGON
        self.fail = fail
        self.calls = []

    async def walking_polygon(self, lat, lon):
        self.calls.append((lat, lon))
        if self.fail:
            raise IsochroneError("503 Service Unavailable")
        return self.polygon

    def get_provider_name(self):
        return "Fake Isochrone"


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def fake_collection():
    return FakeCollection()


@pytest.fixture
def redis_repo(fake_redis):
    return RedisRepository(fake_redis)


@pytest.fixture
def tiered_cache(redis_repo, fake_collection):
    return TieredCache(redis_repo, PlacesRepository(fake_collection))


@pytest.fixture
def supermarket_features():
    return [
        make_feature("inside-1", -75.0, 40.0, ["commercial", "commercial.supermarket"]),
        make_feature("inside-2", -75.005, 40.005, ["commercial", "commercial.supermarket"]),
        make_feature("outside", -74.9, 40.1, ["commercial", "commercial.supermarket"]),
    ]


@pytest.fixture
def poi_provider(supermarket_features):
    return FakePOIProvider({"type": "FeatureCollection", "features": supermarket_features})


@pytest.fixture
def isochrone_provider():
    return FakeIsochroneProvider()


@pytest.fixture
def nearby_service(tiered_cache, redis_repo, poi_provider, isochrone_provider):
    return NearbyPlacesService(
        tiered_cache,
        QuotaGuard(redis_repo, key_prefix="unique-requests", limit=5, window=3600),
        PoiLookupService(poi_provider, isochrone_provider),
    )


def utcnow():
    return datetime.now(timezone.utc)
