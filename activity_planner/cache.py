# ABOUTME: Optional in-memory cache for weather snapshots shared between pipeline runs.
# ABOUTME: Guarantees at most one in-flight upstream fetch per location key, with a time-to-live.

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from activity_planner.models import ResolvedLocation, WeatherSnapshot

logger = logging.getLogger(__name__)

CacheKey = tuple[str, float, float]


class SnapshotCache:
    """TTL cache keyed by display name and rounded coordinates.

    Concurrent requests for the same key await a single shared fetch. Failed fetches are
    not cached, so the next request goes upstream again. Expired entries are dropped whenever
    a new snapshot is stored, and the oldest entries are evicted beyond ``max_entries``.
    """

    def __init__(
        self,
        ttl: float = 300.0,
        precision: int = 2,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.max_entries = max_entries
        self.precision = precision
        self._clock = clock
        self._entries: dict[CacheKey, tuple[float, WeatherSnapshot]] = {}
        self._inflight: dict[CacheKey, asyncio.Future] = {}

    def key(self, location: ResolvedLocation) -> CacheKey:
        return (
            location.display_name,
            round(location.latitude, self.precision),
            round(location.longitude, self.precision),
        )

    async def get_or_fetch(
        self,
        location: ResolvedLocation,
        fetch: Callable[[], Awaitable[WeatherSnapshot]],
    ) -> WeatherSnapshot:
        key = self.key(location)
        entry = self._entries.get(key)
        if entry is not None and self._clock() - entry[0] < self.ttl:
            logger.debug("Snapshot cache hit for %s", key)
            return entry[1]

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(fetch())
            self._inflight[key] = task
            task.add_done_callback(lambda t: self._settle(key, t))
        # A cancelled waiter must not cancel the fetch other waiters share.
        return await asyncio.shield(task)

    def _settle(self, key: CacheKey, task: asyncio.Future) -> None:
        self._inflight.pop(key, None)
        if task.cancelled() or task.exception() is not None:
            return
        now = self._clock()
        self._evict(now)
        self._entries.pop(key, None)
        self._entries[key] = (now, task.result())
        while len(self._entries) > self.max_entries:
            # dicts keep insertion order, so the first key is the oldest
            del self._entries[next(iter(self._entries))]

    def _evict(self, now: float) -> None:
        expired = [k for k, (stored, _) in self._entries.items() if now - stored >= self.ttl]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.debug("Evicted %d expired snapshots", len(expired))

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()
