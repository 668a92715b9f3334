"""Abstract base class for cache service providers.

Defines the key-value contract used for deep-analysis memoization and
rate-limit counters.  Implementations may use an in-process TTL cache,
Redis, or any store with per-entry expiry.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ICacheProvider(ABC):
    """Contract for key-value cache services with per-entry TTL.

    All operations are async to allow for network-backed stores (e.g. Redis)
    without blocking the event loop.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Retrieve the value stored under *key*.

        Returns
        -------
        Any or None
            The cached value if present and not expired; ``None`` otherwise.
        """

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store *value* under *key* with an optional time-to-live.

        Parameters
        ----------
        key:
            The cache key.
        value:
            The value to store (str, int, float, dict, list).
        ttl:
            Time-to-live in seconds for this entry only.  ``None`` uses the
            provider's default TTL.
        """

    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this cache backend."""
        return type(self).__name__
