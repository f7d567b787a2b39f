import logging
from mapsy.core.geo_providers import BaseIsochroneProvider, BasePOIProvider, IsochroneError
from mapsy.core.logger import logs
from mapsy.models.places_model import ErrorCode, ErrorResponse
from mapsy.services.classifier import PROVIDER_CATEGORIES, empty_result, sort_by_category
from mapsy.services.geometry import point_in_polygon


class PoiLookupService:
    """
    Fresh (uncached) lookup: POIs around the point, restricted to the
    walking isochrone and sorted into categories.
    """

    def __init__(self, poi_provider: BasePOIProvider, isochrone_provider: BaseIsochroneProvider):
        self.poi_provider = poi_provider
        self.isochrone_provider = isochrone_provider

    async def lookup(self, lat: float, lon: float) -> dict | ErrorResponse:
        # 1. POIs within the search radius
        try:
            poi_data = await self.poi_provider.search(lat, lon, PROVIDER_CATEGORIES)
        except Exception as e:
            return ErrorResponse(error=f"Error getting places: {str(e)}", code=ErrorCode.API_ERROR)

        if not isinstance(poi_data, dict):
            return ErrorResponse(error=poi_data, code=ErrorCode.PROVIDER_EXHAUSTED)

        features = poi_data.get("features")
        if features is None:
            # Provider refused the request, pass its own message through
            logs.log(logging.WARNING, f"{self.poi_provider.get_provider_name()} returned no features", extra=poi_data)
            error = poi_data.get("error") or poi_data.get("message") or poi_data
            return ErrorResponse(error=error, code=ErrorCode.PROVIDER_EXHAUSTED)

        # 2. Walking isochrone for the same point
        try:
            polygon = await self.isochrone_provider.walking_polygon(lat, lon)
        except IsochroneError as e:
            return ErrorResponse(error=f"Error getting isochrone: {str(e)}", code=ErrorCode.ISOCHRONE_ERROR)

        # 3. Keep only what is reachable on foot
        reachable = [
            poi for poi in features
            if point_in_polygon(poi["geometry"]["coordinates"], polygon)
        ]

        # 4. Categorize
        sorted_poi = empty_result()
        for poi in reachable:
            sort_by_category(poi, poi.get("properties", {}).get("categories", []), sorted_poi)

        logs.log(
            logging.INFO,
            f"Lookup for {lat}, {lon}: {len(features)} POIs found, {len(reachable)} within walking distance"
        )
        return sorted_poi
