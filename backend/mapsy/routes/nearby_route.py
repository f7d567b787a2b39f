import logging
from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from fastapi.responses import JSONResponse

from mapsy.core.config import settings
from mapsy.core.db_connection import db_connection
from mapsy.core.geo_providers import GeoapifyPlacesProvider, MapboxIsochroneProvider
from mapsy.core.logger import logs
from mapsy.models.places_model import ErrorCode, ErrorResponse, NearbyPlacesResponse
from mapsy.repos.cache_repo import RedisRepository
from mapsy.services.Cache_service import TieredCache
from mapsy.services.Lookup_service import PoiLookupService
from mapsy.services.Nearby_service import NearbyPlacesService
from mapsy.services.Quota_service import QuotaGuard

router = APIRouter()

STATUS_BY_CODE = {
    ErrorCode.PROVIDER_EXHAUSTED: 503,
    ErrorCode.API_ERROR: 502,
    ErrorCode.ISOCHRONE_ERROR: 502,
    ErrorCode.UNIQUE_REQUESTS_LIMIT_EXCEEDED: 429,
    ErrorCode.RATE_LIMIT_EXCEEDED: 429,
    ErrorCode.UNAUTHORIZED_DOMAIN: 403,
    ErrorCode.INTERNAL_ERROR: 500,
}


class RejectedRequest(Exception):
    """Raised by guard dependencies; rendered by the handler in main."""

    def __init__(self, error: ErrorResponse):
        self.error = error


def error_response(error: ErrorResponse) -> JSONResponse:
    headers = {"Retry-After": str(error.retry_after)} if error.retry_after is not None else None
    return JSONResponse(status_code=STATUS_BY_CODE[error.code], content=error.body(), headers=headers)


def get_client_ip(request: Request) -> str:
    """Real client IP behind a proxy: first X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


# --- Guards ---
async def verify_origin(request: Request):
    """Only the frontend (by Referer or Origin) may call the API."""
    allowed = settings.ALLOWED_DOMAIN
    referer = request.headers.get("referer")
    origin = request.headers.get("origin")

    if (not referer or not referer.startswith(allowed)) and origin != allowed:
        raise RejectedRequest(ErrorResponse(
            error="Access denied. Requests must come from the authorized domain.",
            code=ErrorCode.UNAUTHORIZED_DOMAIN
        ))


def get_redis_repo() -> RedisRepository:
    return RedisRepository(db_connection.get_redis())


def get_request_limiter(repo: RedisRepository = Depends(get_redis_repo)) -> QuotaGuard:
    return QuotaGuard(repo, key_prefix="requests", limit=settings.REQUESTS_PER_HOUR, window=60 * 60)


async def enforce_rate_limit(request: Request, limiter: QuotaGuard = Depends(get_request_limiter)):
    client_ip = get_client_ip(request)
    try:
        admitted = await limiter.admit(client_ip)
        if admitted:
            await limiter.record(client_ip)
        else:
            retry_after = await limiter.retry_after(client_ip)
    except Exception as e:
        logs.log(logging.ERROR, f"Rate limiter failed for {client_ip}: {str(e)}")
        raise RejectedRequest(ErrorResponse(error="Internal server error", code=ErrorCode.INTERNAL_ERROR))

    if not admitted:
        raise RejectedRequest(ErrorResponse(
            error="Too many requests, please try again later.",
            code=ErrorCode.RATE_LIMIT_EXCEEDED,
            retry_after=retry_after
        ))


# --- Dependency Injection ---
def get_durable_repo():
    """The durable tier opened at startup, Mongo or local files by storage mode."""
    return db_connection.get_durable_repo()


def get_nearby_service(
    background_tasks: BackgroundTasks,
    redis_repo: RedisRepository = Depends(get_redis_repo),
    durable_repo=Depends(get_durable_repo)
) -> NearbyPlacesService:
    cache = TieredCache(
        redis_repo,
        durable_repo,
        fast_ttl=settings.FAST_CACHE_TTL,
        durable_ttl=settings.DURABLE_CACHE_TTL,
        # Durable insert runs after the response is sent
        defer=background_tasks.add_task
    )
    quota = QuotaGuard(
        redis_repo,
        key_prefix="unique-requests",
        limit=settings.UNIQUE_REQUESTS_LIMIT,
        window=settings.UNIQUE_REQUESTS_WINDOW
    )
    lookup = PoiLookupService(
        GeoapifyPlacesProvider(
            settings.GEOAPIFY_PLACES_KEY,
            radius=settings.SEARCH_RADIUS_METERS,
            limit=settings.POI_LIMIT,
            timeout=settings.UPSTREAM_TIMEOUT
        ),
        MapboxIsochroneProvider(
            settings.MAPBOX_ACCESS_TOKEN,
            minutes=settings.WALK_MINUTES,
            timeout=settings.UPSTREAM_TIMEOUT
        )
    )
    return NearbyPlacesService(cache, quota, lookup, precision=settings.COORDINATE_PRECISION)


# --- The Endpoint ---
@router.get(
    "/nearby-places",
    response_model=NearbyPlacesResponse,
    dependencies=[Depends(verify_origin), Depends(enforce_rate_limit)]
)
async def nearby_places_endpoint(
    request: Request,
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    service: NearbyPlacesService = Depends(get_nearby_service)
):
    """
    Points of interest within a 30 minute walk of (lat, lon), by category.
    """
    client_ip = get_client_ip(request)
    try:
        result = await service.get_nearby_places(lat, lon, client_ip)
    except Exception as e:
        logs.log(logging.ERROR, f"Error in nearby_places_endpoint: {str(e)}")
        return error_response(ErrorResponse(error="Internal server error", code=ErrorCode.INTERNAL_ERROR))

    if isinstance(result, ErrorResponse):
        return error_response(result)
    return result
