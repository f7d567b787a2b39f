from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from enum import Enum

# GeoJSON feature as returned by the POI provider
Feature = Dict[str, Any]

# --- Enums ---
class ErrorCode(str, Enum):
    PROVIDER_EXHAUSTED = "PROVIDER_EXHAUSTED"
    API_ERROR = "API_ERROR"
    ISOCHRONE_ERROR = "ISOCHRONE_ERROR"
    UNIQUE_REQUESTS_LIMIT_EXCEEDED = "UNIQUE_REQUESTS_LIMIT_EXCEEDED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    UNAUTHORIZED_DOMAIN = "UNAUTHORIZED_DOMAIN"
    INTERNAL_ERROR = "INTERNAL_ERROR"

# --- API Response Models ---
class POIByCategory(BaseModel):
    supermarket: List[Feature] = []
    pharmacy: List[Feature] = []
    restaurant: List[Feature] = []
    fastfood: List[Feature] = []
    hotel: List[Feature] = []

class NearbyPlacesResponse(BaseModel):
    forCoordinates: List[float]
    requestedBy: str
    POIbyCategory: POIByCategory

class ErrorResponse(BaseModel):
    error: Any
    code: ErrorCode
    retry_after: Optional[int] = None  # Seconds, only for quota errors

    def body(self) -> dict:
        """The {error, code} object sent to the caller."""
        return {"error": self.error, "code": self.code.value}
