"""
Stale-while-revalidate orchestration for cached resources.
"""

import asyncio
import inspect
import time
from dataclasses import dataclass, replace
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Tuple, TYPE_CHECKING

from shared.errors import StorageError
from shared.logging import get_logger

from ..caching.expiring_cache import ExpiringCache

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


SOURCE_EMPTY = "empty"
SOURCE_CACHE = "cache"
SOURCE_MEMORY = "memory"
SOURCE_NETWORK = "network"

Fetcher = Callable[[], Awaitable[Any]]
StateCallback = Callable[["ResourceState"], Any]


@dataclass(frozen=True)
class ResourceState:
    """Snapshot of one resource as a consumer should display it."""

    key: str
    value: Any = None
    source: str = SOURCE_EMPTY
    is_loading: bool = False
    is_refreshing: bool = False
    error: Optional[str] = None

    @property
    def has_value(self) -> bool:
        return self.value is not None


class RefreshScope:
    """
    Liveness flag for one screen or session.

    Results that arrive after the scope is closed are dropped: they are
    neither emitted nor written back to the cache.
    """

    def __init__(self, name: str = "default"):
        self.name = name
        self._alive = True

    @property
    def alive(self) -> bool:
        return self._alive

    def close(self) -> None:
        self._alive = False

    def __enter__(self) -> "RefreshScope":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class StaleWhileRevalidate:
    """
    Serve cached data immediately and refresh it from the network.

    Each invocation produces at most two states: the optimistic one (cached
    value, or a loading placeholder) and the final one (fresh network value,
    or the retained value if the fetch failed). Network, payload and storage
    failures are logged and never raised to the consumer. No retry is
    scheduled here; the next invocation is the retry.
    """

    def __init__(self, cache: ExpiringCache, *, metrics: Optional["MetricsCollector"] = None):
        self.cache = cache
        self.metrics = metrics
        self.logger = get_logger("attendance.sync.revalidator")

    async def stream(
        self,
        key: str,
        fetcher: Fetcher,
        ttl_minutes: float,
        *,
        current: Any = None,
        default: Any = None,
        scope: Optional[RefreshScope] = None,
        resource: Optional[str] = None,
    ) -> AsyncIterator[ResourceState]:
        """Yield the optimistic state, then the final state."""
        resource = resource or key
        # Network starts first so the cache read never delays it
        fetch_task = asyncio.ensure_future(self._fetch(fetcher, resource))

        try:
            cached = await self.cache.get(key)
            if cached is not None:
                displayed, source = cached, SOURCE_CACHE
            elif current is not None:
                displayed, source = current, SOURCE_MEMORY
            else:
                displayed, source = None, SOURCE_EMPTY

            if not self._is_alive(scope, key):
                return

            yield ResourceState(
                key=key,
                value=displayed,
                source=source,
                is_loading=displayed is None,
                is_refreshing=displayed is not None,
            )

            ok, result = await fetch_task

            if not self._is_alive(scope, key):
                return

            if ok:
                try:
                    await self.cache.set(key, result, ttl_minutes)
                except (StorageError, TypeError, ValueError) as e:
                    self.logger.warning("Failed to write refreshed value to cache", key=key, error=str(e))
                yield ResourceState(key=key, value=result, source=SOURCE_NETWORK)
            else:
                if displayed is None:
                    displayed = default
                yield ResourceState(key=key, value=displayed, source=source, error=result)
        finally:
            if not fetch_task.done():
                fetch_task.cancel()

    async def get_then_refresh(
        self,
        key: str,
        fetcher: Fetcher,
        ttl_minutes: float,
        *,
        on_update: Optional[StateCallback] = None,
        current: Any = None,
        default: Any = None,
        scope: Optional[RefreshScope] = None,
        resource: Optional[str] = None,
    ) -> ResourceState:
        """Run the full protocol, forwarding each state to on_update, and return the last one."""
        final = ResourceState(
            key=key,
            value=current if current is not None else default,
            source=SOURCE_MEMORY if current is not None else SOURCE_EMPTY,
        )

        async for state in self.stream(
            key,
            fetcher,
            ttl_minutes,
            current=current,
            default=default,
            scope=scope,
            resource=resource,
        ):
            final = state
            if on_update is not None:
                outcome = on_update(state)
                if inspect.isawaitable(outcome):
                    await outcome

        return replace(final, is_loading=False, is_refreshing=False)

    async def _fetch(self, fetcher: Fetcher, resource: str) -> Tuple[bool, Any]:
        start = time.perf_counter()
        try:
            result = await fetcher()
        except Exception as e:
            self.logger.warning("Refresh failed, keeping last known value", resource=resource, error=str(e))
            self._record(resource, "error", time.perf_counter() - start)
            return False, str(e) or type(e).__name__

        self._record(resource, "success", time.perf_counter() - start)
        return True, result

    def _is_alive(self, scope: Optional[RefreshScope], key: str) -> bool:
        if scope is None or scope.alive:
            return True
        self.logger.debug("Discarding result for closed scope", key=key, scope=scope.name)
        return False

    def _record(self, resource: str, outcome: str, duration: float) -> None:
        if self.metrics:
            self.metrics.increment_counter("resource_refresh_total", resource=resource, outcome=outcome)
            self.metrics.observe_histogram("resource_refresh_duration_seconds", duration, resource=resource)
