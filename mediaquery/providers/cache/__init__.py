"""Cache providers.

MemoryCacheProvider keeps entries in-process with per-entry expiry.  For
multi-worker deployments, swap in a shared backend implementing
ICacheProvider without changing any business logic.
"""

from mediaquery.providers.cache.memory_cache import MemoryCacheProvider

__all__ = ["MemoryCacheProvider"]
