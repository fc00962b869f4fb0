"""In-process result cache.

Records live only as long as the process, so every new process re-checks
everything. Used by tests and when caching is disabled.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from driftwatch.core.models import DriftCacheKey, DriftCacheRecord, WorkspaceCacheKey, WorkspaceCacheRecord

K = TypeVar("K")
R = TypeVar("R")


class MemoryStore(Generic[K, R]):
    """Dict-backed keyed store."""

    def __init__(self) -> None:
        self.records: dict[K, R] = {}

    async def get(self, key: K) -> R | None:
        return self.records.get(key)

    async def put(self, key: K, record: R) -> None:
        self.records[key] = record

    async def delete(self, key: K) -> None:
        self.records.pop(key, None)


class MemoryResultCache:
    def __init__(self) -> None:
        self._drift_checks: MemoryStore[DriftCacheKey, DriftCacheRecord] = MemoryStore()
        self._workspace_listings: MemoryStore[WorkspaceCacheKey, WorkspaceCacheRecord] = MemoryStore()

    @property
    def drift_checks(self) -> MemoryStore[DriftCacheKey, DriftCacheRecord]:
        return self._drift_checks

    @property
    def workspace_listings(self) -> MemoryStore[WorkspaceCacheKey, WorkspaceCacheRecord]:
        return self._workspace_listings
