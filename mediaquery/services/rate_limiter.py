"""Per-client request counter over a fixed TTL window.

The read-increment-write is not atomic: concurrent requests from one
client can read the same count and briefly exceed the limit.  Each admitted
request rewrites the counter with a fresh TTL, so the window restarts on
every admission and the counter expires one window after the last one.
"""

from __future__ import annotations

import structlog

from mediaquery.interfaces.cache_provider import ICacheProvider
from mediaquery.utils.errors import RateLimitError

logger = structlog.get_logger(logger_name=__name__)


class RateLimiter:
    def __init__(self, cache: ICacheProvider, limit: int = 100, window_seconds: int = 3600) -> None:
        self._cache = cache
        self._limit = limit
        self._window = window_seconds

    @staticmethod
    def key(client_id: str) -> str:
        return f"ratelimit:{client_id}"

    async def check(self, client_id: str) -> int:
        """Admit one request for *client_id* and return its new count.

        Raises
        ------
        RateLimitError
            If the client has already used its budget for the window.
        """
        key = self.key(client_id)
        raw = await self._cache.get(key)
        try:
            count = int(raw or 0)
        except (TypeError, ValueError):
            count = 0

        if count >= self._limit:
            logger.warning("rate_limit_exceeded", client_id=client_id, count=count, limit=self._limit)
            raise RateLimitError(limit=self._limit, retry_after=self._window)

        await self._cache.set(key, count + 1, ttl=self._window)
        return count + 1
