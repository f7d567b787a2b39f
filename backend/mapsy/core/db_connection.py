from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from redis import asyncio as aioredis
from mapsy.core.config import settings
from mapsy.core.logger import logs
from mapsy.repos.local_repo import LocalPlacesRepository
from mapsy.repos.places_repo import PlacesRepository
import logging

class AsyncDBConnection:
    """
    Owns the process-wide Redis client and the durable tier
    (Motor client, or the local JSON store when STORAGE_MODE=local).
    connect() is called once at startup and close() once at shutdown;
    request handlers only borrow the handles.
    """

    def __init__(self):
        self.redis: aioredis.Redis | None = None
        self.mongo: AsyncIOMotorClient | None = None
        self.local: LocalPlacesRepository | None = None

    async def connect(self):
        self.redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
        await self.redis.ping()
        logs.log(logging.INFO, "Redis connected")

        if settings.STORAGE_MODE == "mongodb":
            # Fail fast when Mongo is unreachable instead of Motor's 30 s default
            self.mongo = AsyncIOMotorClient(
                settings.MONGO_URI,
                serverSelectionTimeoutMS=settings.MONGO_TIMEOUT_MS
            )
            await self._ensure_indexes(self.get_collection())
            logs.log(logging.INFO, "MongoDB connection initialized")
        else:
            self.local = LocalPlacesRepository(settings.LOCAL_CACHE_DIR)
            logs.log(logging.INFO, "Using local file storage - MongoDB not initialized")

    async def close(self):
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None
        if self.mongo is not None:
            self.mongo.close()
            self.mongo = None
        self.local = None
        logs.log(logging.INFO, "Store connections closed")

    def get_redis(self) -> aioredis.Redis:
        if self.redis is None:
            raise RuntimeError("Redis not connected - connect() was not called at startup")
        return self.redis

    def get_collection(self) -> AsyncIOMotorCollection:
        """
        Returns the durable cache collection.
        Only available when STORAGE_MODE=mongodb
        """
        if settings.STORAGE_MODE != "mongodb":
            raise RuntimeError("MongoDB not available - STORAGE_MODE is set to 'local'")
        if self.mongo is None:
            raise RuntimeError("MongoDB not connected - connect() was not called at startup")
        return self.mongo[settings.MONGO_DB_NAME][settings.MONGO_COLLECTION]

    def get_durable_repo(self):
        if settings.STORAGE_MODE == "local":
            if self.local is None:
                raise RuntimeError("Local store not initialized - connect() was not called at startup")
            return self.local
        return PlacesRepository(self.get_collection())

    async def _ensure_indexes(self, collection: AsyncIOMotorCollection):
        try:
            await collection.create_index("generalCoordinates")
            # Documents are removed by MongoDB once expiresAt has passed
            await collection.create_index("expiresAt", expireAfterSeconds=0)
        except Exception as e:
            logs.log(logging.ERROR, f"Failed to create durable cache indexes: {str(e)}")

# Instantiate the connection manager
db_connection = AsyncDBConnection()
