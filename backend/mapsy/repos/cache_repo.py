import json
from redis import asyncio as aioredis


class RedisRepository:
    """Thin async wrapper over the Redis fast tier and quota counters."""

    def __init__(self, redis: aioredis.Redis):
        self.redis = redis

    async def get_json(self, key: str) -> dict | None:
        raw = await self.redis.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set_json(self, key: str, value: dict, ttl: int):
        await self.redis.set(key, json.dumps(value), ex=ttl)

    async def get_counter(self, key: str) -> int | None:
        raw = await self.redis.get(key)
        return int(raw) if raw is not None else None

    async def increment(self, key: str) -> int:
        return await self.redis.incr(key)

    async def expire(self, key: str, ttl: int):
        await self.redis.expire(key, ttl)

    async def seconds_left(self, key: str) -> int | None:
        """Remaining TTL, or None when the key is gone or never expires."""
        ttl = await self.redis.ttl(key)
        return ttl if ttl is not None and ttl >= 0 else None
