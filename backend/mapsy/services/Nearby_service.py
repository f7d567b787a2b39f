import logging
from mapsy.core.logger import logs
from mapsy.models.places_model import ErrorCode, ErrorResponse
from mapsy.services.Cache_service import TieredCache, quantize_coordinate
from mapsy.services.Lookup_service import PoiLookupService
from mapsy.services.Quota_service import QuotaGuard


class NearbyPlacesService:
    """
    Cache first; only a miss in both tiers spends the client's
    unique-location quota and calls the upstream providers.
    """

    def __init__(self, cache: TieredCache, quota: QuotaGuard, lookup: PoiLookupService,
                 precision: int = 3):
        self.cache = cache
        self.quota = quota
        self.lookup = lookup
        self.precision = precision

    async def get_nearby_places(self, lat: float, lon: float, client_id: str) -> dict | ErrorResponse:
        # 1. Check Cache
        rounded_lat = quantize_coordinate(lat, self.precision)
        rounded_lon = quantize_coordinate(lon, self.precision)

        cached = await self.cache.get(rounded_lat, rounded_lon)
        if cached is not None:
            return cached

        # 2. Unique-location quota, only on a full miss
        if not await self.quota.admit(client_id):
            return ErrorResponse(
                error=f"Too many unique location requests. Maximum {self.quota.limit} new locations per hour.",
                code=ErrorCode.UNIQUE_REQUESTS_LIMIT_EXCEEDED,
                retry_after=await self.quota.retry_after(client_id)
            )
        await self.quota.record(client_id)

        # 3. Fresh lookup with the precise coordinates
        logs.log(logging.INFO, f"Fresh lookup for {lat}, {lon} requested by {client_id}")
        result = await self.lookup.lookup(lat, lon)
        if isinstance(result, ErrorResponse):
            logs.log(logging.WARNING, f"Lookup failed for {lat}, {lon}: {result.code.value}", extra={"error": result.error})
            return result

        nearby_places = {
            "forCoordinates": [lat, lon],
            "requestedBy": client_id,
            "POIbyCategory": result,
        }

        # 4. Save to both tiers
        await self.cache.put(rounded_lat, rounded_lon, nearby_places)
        return nearby_places
