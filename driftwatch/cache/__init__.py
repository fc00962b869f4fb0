"""Result cache backends."""

from __future__ import annotations

from driftwatch.cache.memory import MemoryResultCache, MemoryStore
from driftwatch.cache.sqlite import SqliteResultCache
from driftwatch.config.schema import Settings


async def open_result_cache(settings: Settings) -> MemoryResultCache | SqliteResultCache:
    """Create and initialize the cache backend selected in settings."""
    if settings.cache_backend == "memory":
        return MemoryResultCache()
    cache = SqliteResultCache(settings.cache_path)
    await cache.initialize()
    return cache


__all__ = ["MemoryResultCache", "MemoryStore", "SqliteResultCache", "open_result_cache"]
