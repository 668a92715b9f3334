"""In-memory cache provider using cachetools.TLRUCache.

Each entry carries its own expiry, so deep-analysis results (one week) and
rate-limit counters (one hour) can share a single cache.  Fast and
dependency-light, but not shared across processes; multi-worker
deployments should implement ICacheProvider over Redis instead.
"""

from __future__ import annotations

import time
from typing import Any, Callable, NamedTuple

import structlog
from cachetools import TLRUCache

from mediaquery.interfaces.cache_provider import ICacheProvider

logger = structlog.get_logger(logger_name=__name__)


class _Entry(NamedTuple):
    value: Any
    ttl: float


def _time_to_use(_key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class MemoryCacheProvider(ICacheProvider):
    """In-memory per-entry TTL cache backed by ``cachetools.TLRUCache``.

    Parameters
    ----------
    max_size:
        Maximum number of entries before the least-recently-used entry
        is evicted.
    ttl:
        Default time-to-live in seconds when ``set`` is called without one.
    timer:
        Clock used for expiry; defaults to ``time.monotonic``.
    """

    def __init__(
        self,
        max_size: int = 1000,
        ttl: int = 3600,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_ttl = ttl
        self._cache: TLRUCache[str, _Entry] = TLRUCache(
            maxsize=max_size, ttu=_time_to_use, timer=timer
        )

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        """Retrieve the cached value for *key*, or ``None`` if missing/expired."""
        entry = self._cache.get(key)
        if entry is None:
            logger.debug("cache_miss", key=key)
            return None
        logger.debug("cache_hit", key=key)
        return entry.value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store *value* under *key*, expiring after *ttl* seconds."""
        effective_ttl = self._default_ttl if ttl is None else ttl
        self._cache[key] = _Entry(value=value, ttl=effective_ttl)
        logger.debug("cache_set", key=key, ttl=effective_ttl)

    def get_provider_name(self) -> str:
        return "memory"
