import asyncio
import logging
from typing import Callable, Protocol
from mapsy.core.logger import logs
from mapsy.repos.cache_repo import RedisRepository

# Durable writes started outside a request, kept so they are not garbage collected
_background_writes: set = set()


def spawn_background_write(func: Callable, *args):
    task = asyncio.create_task(func(*args))
    _background_writes.add(task)
    task.add_done_callback(_background_writes.discard)


async def drain_background_writes():
    """Wait for the durable writes started on the running loop."""
    loop = asyncio.get_running_loop()
    pending = [task for task in _background_writes if task.get_loop() is loop]
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)


def quantize_coordinate(value: float, precision: int = 3) -> float:
    """
    Rounds a coordinate to the cache grid (3 decimals is roughly 100 m).
    Adding 0.0 folds -0.0 into 0.0 so both map to the same key.
    """
    return round(value, precision) + 0.0


class DurableRepository(Protocol):
    async def find_entry(self, lat: float, lon: float) -> dict | None: ...

    async def save_entry(self, lat: float, lon: float, entry: dict, ttl: int): ...


class TieredCache:
    """
    Redis in front of a durable store, both keyed on quantized coordinates.
    Durable hits are promoted into Redis. Store failures are logged and
    treated as misses; they never fail the request.

    put() only waits for Redis. The durable insert is handed to `defer`
    (FastAPI's BackgroundTasks.add_task in the route, a tracked asyncio
    task otherwise) so a slow store never delays the response.
    """

    def __init__(self, fast: RedisRepository, durable: DurableRepository,
                 fast_ttl: int = 60 * 60 * 6, durable_ttl: int = 60 * 60 * 24 * 4,
                 defer: Callable | None = None):
        self.fast = fast
        self.durable = durable
        self.fast_ttl = fast_ttl
        self.durable_ttl = durable_ttl
        self.defer = defer or spawn_background_write

    @staticmethod
    def cache_key(lat: float, lon: float) -> str:
        return f"nearby-{lat}-{lon}"

    async def get(self, lat: float, lon: float) -> dict | None:
        key = self.cache_key(lat, lon)

        try:
            cached = await self.fast.get_json(key)
        except Exception as e:
            logs.log(logging.ERROR, f"Redis read failed for {key}: {str(e)}")
            cached = None

        if cached is not None:
            logs.log(logging.INFO, f"✓ Redis cache HIT for {lat}, {lon}")
            return cached

        try:
            saved = await self.durable.find_entry(lat, lon)
        except Exception as e:
            logs.log(logging.ERROR, f"Durable cache read failed for {lat}, {lon}: {str(e)}")
            return None

        if saved is None:
            logs.log(logging.INFO, f"✗ Cache MISS for {lat}, {lon}")
            return None

        logs.log(logging.INFO, f"✓ Durable cache HIT for {lat}, {lon}, promoting to Redis")
        await self._write_fast(key, saved)
        return saved

    async def put(self, lat: float, lon: float, entry: dict):
        await self._write_fast(self.cache_key(lat, lon), entry)
        self.defer(self._write_durable, lat, lon, entry)

    async def _write_fast(self, key: str, entry: dict):
        try:
            await self.fast.set_json(key, entry, self.fast_ttl)
        except Exception as e:
            logs.log(logging.WARNING, f"Redis write failed for {key}: {str(e)}")

    async def _write_durable(self, lat: float, lon: float, entry: dict):
        try:
            await self.durable.save_entry(lat, lon, entry, self.durable_ttl)
        except Exception as e:
            logs.log(logging.ERROR, f"Durable cache write failed for {lat}, {lon}: {str(e)}")
