"""
Upstream Geo Provider Implementations
POI search (Geoapify Places) and walking isochrones (Mapbox) behind a
small interface each, so the lookup service can be fed fakes in tests.
"""
import httpx
import logging
from abc import ABC, abstractmethod
from typing import List
from mapsy.core.logger import logs


class BasePOIProvider(ABC):
    """Base class for point-of-interest providers"""

    @abstractmethod
    async def search(self, lat: float, lon: float, categories: List[str]) -> dict:
        """
        Return the raw provider body. A body without a "features" list means
        the provider refused the request (usually an exhausted API quota).
        """
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        pass


class BaseIsochroneProvider(ABC):
    """Base class for travel-time polygon providers"""

    @abstractmethod
    async def walking_polygon(self, lat: float, lon: float) -> list:
        """Return the outer ring of the walking isochrone as [lon, lat] positions."""
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        pass


class IsochroneError(Exception):
    """The isochrone provider could not produce a polygon."""


class GeoapifyPlacesProvider(BasePOIProvider):
    """Geoapify Places API v2"""

    def __init__(self, api_key: str, radius: int = 5000, limit: int = 60,
                 timeout: float = 15.0, transport: httpx.AsyncBaseTransport | None = None):
        self.api_key = api_key
        self.radius = radius
        self.limit = limit
        self.timeout = timeout
        self.transport = transport
        self.base_url = "https://api.geoapify.com/v2/places"

    async def search(self, lat: float, lon: float, categories: List[str]) -> dict:
        params = {
            "categories": ",".join(categories),
            "filter": f"circle:{lon},{lat},{self.radius}",
            "bias": f"proximity:{lon},{lat}",
            "limit": self.limit,
            "apiKey": self.api_key,
        }

        async with httpx.AsyncClient(transport=self.transport) as client:
            try:
                # Error bodies are returned as-is; the caller inspects them
                response = await client.get(self.base_url, params=params, timeout=self.timeout)
                return response.json()
            except Exception as e:
                logs.log(logging.ERROR, f"Geoapify API error: {str(e)}")
                raise

    def get_provider_name(self) -> str:
        return "Geoapify"


class MapboxIsochroneProvider(BaseIsochroneProvider):
    """Mapbox Isochrone API v1, walking profile"""

    def __init__(self, access_token: str, minutes: int = 30,
                 timeout: float = 15.0, transport: httpx.AsyncBaseTransport | None = None):
        self.access_token = access_token
        self.minutes = minutes
        self.timeout = timeout
        self.transport = transport
        self.base_url = "https://api.mapbox.com/isochrone/v1/mapbox/walking"

    async def walking_polygon(self, lat: float, lon: float) -> list:
        params = {
            "contours_minutes": self.minutes,
            "polygons": "true",
            "denoise": 1,
            "generalize": 300,
            "access_token": self.access_token,
        }

        async with httpx.AsyncClient(transport=self.transport) as client:
            try:
                response = await client.get(
                    f"{self.base_url}/{lon},{lat}",
                    params=params,
                    timeout=self.timeout
                )
                response.raise_for_status()
                data = response.json()
                return data["features"][0]["geometry"]["coordinates"][0]
            except Exception as e:
                logs.log(logging.ERROR, f"Mapbox isochrone error: {str(e)}")
                raise IsochroneError(str(e)) from e

    def get_provider_name(self) -> str:
        return "Mapbox"
