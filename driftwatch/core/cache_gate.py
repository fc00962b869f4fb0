"""TTL idempotency gate in front of the result cache.

A record younger than the TTL means the check already ran in this window and
the caller skips it. An older record is deleted before the check runs again;
stale records are never silently overwritten or ignored.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Generic, Protocol, TypeVar

import structlog

from driftwatch.core.models import Clock, utc_now
from driftwatch.core.protocols import KeyedStore

logger = structlog.get_logger(__name__)


class TimestampedRecord(Protocol):
    def age(self, now: datetime) -> float: ...


K = TypeVar("K")
R = TypeVar("R", bound=TimestampedRecord)


class CacheGate(Generic[K, R]):
    """Lookup / evict-if-stale / store over one keyed store.

    Errors from the store (``CacheError``) are not caught here; they are fatal
    for the run.
    """

    def __init__(
        self,
        store: KeyedStore[K, R],
        ttl: timedelta,
        *,
        kind: str,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self.ttl = ttl
        self.kind = kind
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    async def lookup(self, key: K) -> R | None:
        return await self._store.get(key)

    async def evict_if_stale(self, key: K, record: R, ttl: timedelta | None = None) -> bool:
        """Delete ``record`` if it is at least ``ttl`` old.

        Returns:
            True if the record was stale and has been deleted, False if it is
            still fresh and the caller must skip the underlying work
        """
        ttl = self.ttl if ttl is None else ttl
        age = record.age(self.now())
        if age < ttl.total_seconds():
            return False
        logger.info(
            "Cache expired, checking again",
            kind=self.kind,
            key=str(key),
            cache_age_s=round(age, 1),
            cache_valid_s=ttl.total_seconds(),
        )
        await self._store.delete(key)
        return True

    async def should_run(self, key: K) -> bool:
        """Return True when no fresh record exists for ``key``.

        A stale record is evicted as a side effect.
        """
        record = await self.lookup(key)
        if record is None:
            return True
        return await self.evict_if_stale(key, record)

    async def store(self, key: K, record: R) -> None:
        await self._store.put(key, record)
