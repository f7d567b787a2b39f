import logging
from mapsy.core.logger import logs
from mapsy.repos.cache_repo import RedisRepository


class QuotaGuard:
    """
    Counts requests per client in an expiring window.

    admit() and record() are separate round trips, so concurrent requests
    from one client can overrun the limit slightly. The limit is approximate.
    """

    def __init__(self, repo: RedisRepository, key_prefix: str = "unique-requests",
                 limit: int = 5, window: int = 60 * 60):
        self.repo = repo
        self.key_prefix = key_prefix
        self.limit = limit
        self.window = window

    def _key(self, identity: str) -> str:
        return f"{self.key_prefix}-{identity}"

    async def admit(self, identity: str) -> bool:
        current = await self.repo.get_counter(self._key(identity))
        if current is not None and current >= self.limit:
            logs.log(logging.WARNING, f"{self.key_prefix} limit reached for {identity} ({current}/{self.limit})")
            return False
        return True

    async def record(self, identity: str):
        key = self._key(identity)
        # INCR creates a missing (or just expired) key without a TTL,
        # so whoever brings the count to 1 opens the window
        count = await self.repo.increment(key)
        if count == 1:
            await self.repo.expire(key, self.window)

    async def retry_after(self, identity: str) -> int:
        """Seconds until the client's window resets."""
        seconds = await self.repo.seconds_left(self._key(identity))
        return seconds if seconds is not None else self.window
