from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Durable cache tier: "mongodb" or "local"
    STORAGE_MODE: str = "mongodb"

    # MongoDB Configuration (only needed if STORAGE_MODE=mongodb)
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB_NAME: str = "PlacesData"
    MONGO_COLLECTION: str = "savedPlaces"
    MONGO_TIMEOUT_MS: int = 2000

    # Local durable tier (only used if STORAGE_MODE=local)
    LOCAL_CACHE_DIR: str = "data/cache"

    # Fast cache tier and quota counters
    REDIS_URL: str = "redis://localhost:6379"

    LOGGER: int = 20
    # Empty directory disables the rotating file handler
    LOG_DIRECTORY: str = "logs"
    LOG_FILE: str = "app.log"

    # Upstream providers
    GEOAPIFY_PLACES_KEY: str = "your-key-here"
    MAPBOX_ACCESS_TOKEN: str = "your-key-here"
    UPSTREAM_TIMEOUT: float = 15.0
    SEARCH_RADIUS_METERS: int = 5000
    POI_LIMIT: int = 60
    WALK_MINUTES: int = 30

    # Cache expiry in seconds
    FAST_CACHE_TTL: int = 60 * 60 * 6
    DURABLE_CACHE_TTL: int = 60 * 60 * 24 * 4
    COORDINATE_PRECISION: int = 3

    # Quotas
    UNIQUE_REQUESTS_LIMIT: int = 5
    UNIQUE_REQUESTS_WINDOW: int = 60 * 60
    REQUESTS_PER_HOUR: int = 100

    # Only requests coming from the frontend are served
    ALLOWED_DOMAIN: str = "https://mapsy-theta.vercel.app"
    PORT: int = 8000

    model_config = SettingsConfigDict(
        # Look for .env in the current folder OR the parent folder
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()
