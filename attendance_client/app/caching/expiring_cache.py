"""
Expiring key-value cache over a persistent store.
"""

import json
import time
from typing import Any, Callable, Iterable, List, Optional, TYPE_CHECKING

from shared.errors import StorageError
from shared.logging import get_logger

from ..storage.base import KeyValueStore

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class ExpiringCache:
    """
    Get/set with absolute-time expiry on top of a ``KeyValueStore``.

    Entries are stored as ``{"value": ..., "expiry": <epoch millis>}`` JSON
    text. Expiry is lazy: an entry is only purged when a read finds it
    expired. Unreadable entries (bad JSON, missing envelope) are treated as
    absent and purged. There is no locking; the last writer wins.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        clock: Callable[[], float] = time.time,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.store = store
        self.clock = clock
        self.metrics = metrics
        self.logger = get_logger("attendance.cache")

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def _record(self, result: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("cache_requests_total", result=result)

    async def set(self, key: str, value: Any, ttl_minutes: float) -> None:
        """Store value until now + ttl_minutes. Raises StorageError on store failure."""
        entry = {
            "value": value,
            "expiry": self._now_ms() + int(ttl_minutes * 60 * 1000),
        }
        await self.store.set_item(key, json.dumps(entry))
        self.logger.debug("Cached value", key=key, ttl_minutes=ttl_minutes)

    async def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None if absent, expired or unreadable."""
        try:
            raw = await self.store.get_item(key)
        except StorageError as e:
            self.logger.warning("Cache read failed, treating as miss", key=key, error=e.message)
            self._record("error")
            return None

        if raw is None:
            self._record("miss")
            return None

        try:
            entry = json.loads(raw)
            expiry = entry["expiry"]
            value = entry["value"]
            if not isinstance(expiry, (int, float)):
                raise TypeError("expiry is not a number")
        except (ValueError, TypeError, KeyError) as e:
            self.logger.warning("Discarding unreadable cache entry", key=key, error=str(e))
            self._record("corrupt")
            await self._purge(key)
            return None

        if self._now_ms() >= expiry:
            self.logger.debug("Cache entry expired", key=key)
            self._record("expired")
            await self._purge(key)
            return None

        self.logger.debug("Cache hit", key=key)
        self._record("hit")
        return value

    async def invalidate(self, key: str) -> None:
        """Delete key unconditionally. Absent keys are a no-op."""
        await self.store.remove_item(key)
        self.logger.debug("Invalidated cache entry", key=key)

    async def invalidate_many(self, keys: Iterable[str]) -> List[str]:
        """Invalidate each key, skipping ones the store fails on. Returns the keys removed."""
        removed = []
        for key in keys:
            try:
                await self.invalidate(key)
            except StorageError as e:
                self.logger.warning("Failed to invalidate cache entry", key=key, error=e.message)
                continue
            removed.append(key)
        return removed

    async def _purge(self, key: str) -> None:
        try:
            await self.store.remove_item(key)
        except StorageError as e:
            self.logger.warning("Failed to purge cache entry", key=key, error=e.message)
