"""
Attendance resources read through the stale-while-revalidate layer.
"""

from dataclasses import dataclass
from typing import Any, List, Optional

from shared.logging import get_logger

from ..adapters.attendance_client import AttendanceApiClient
from ..caching import keys
from ..models import dump_list
from ..sync.revalidator import RefreshScope, ResourceState, StaleWhileRevalidate, StateCallback


@dataclass(frozen=True)
class ResourceTtls:
    """Cache lifetimes in minutes."""

    event_list: float = 60
    leaderboard: float = 10
    history: float = 10
    titles: float = 30

    @classmethod
    def from_config(cls, config) -> "ResourceTtls":
        return cls(
            event_list=config.event_list_ttl_minutes,
            leaderboard=config.leaderboard_ttl_minutes,
            history=config.history_ttl_minutes,
            titles=config.titles_ttl_minutes,
        )


class AttendanceResources:
    """Binds each resource to its cache key, TTL and fetcher."""

    def __init__(
        self,
        client: AttendanceApiClient,
        revalidator: StaleWhileRevalidate,
        *,
        ttls: Optional[ResourceTtls] = None,
    ):
        self.client = client
        self.revalidator = revalidator
        self.ttls = ttls or ResourceTtls()
        self.logger = get_logger("attendance.domain.resources")

    async def event_list(
        self,
        *,
        on_update: Optional[StateCallback] = None,
        scope: Optional[RefreshScope] = None,
        current: Optional[List[str]] = None,
    ) -> ResourceState:
        """Event selector options, the global aggregate first."""

        async def fetch() -> List[str]:
            events = await self.client.get_event_list()
            return [keys.GLOBAL_EVENT] + [e for e in events if e != keys.GLOBAL_EVENT]

        return await self.revalidator.get_then_refresh(
            keys.event_list_key(),
            fetch,
            self.ttls.event_list,
            on_update=on_update,
            current=current,
            default=[keys.GLOBAL_EVENT],
            scope=scope,
            resource="event_list",
        )

    async def leaderboard(
        self,
        event: str = keys.GLOBAL_EVENT,
        *,
        on_update: Optional[StateCallback] = None,
        scope: Optional[RefreshScope] = None,
        current: Optional[List[Any]] = None,
    ) -> ResourceState:

        async def fetch() -> List[dict]:
            return dump_list(await self.client.get_leaderboard(event))

        return await self.revalidator.get_then_refresh(
            keys.leaderboard_key(event),
            fetch,
            self.ttls.leaderboard,
            on_update=on_update,
            current=current,
            default=[],
            scope=scope,
            resource="leaderboard",
        )

    async def history(
        self,
        user_name: str,
        *,
        on_update: Optional[StateCallback] = None,
        scope: Optional[RefreshScope] = None,
        current: Optional[List[Any]] = None,
    ) -> ResourceState:

        async def fetch() -> List[dict]:
            return dump_list(await self.client.get_user_history(user_name))

        return await self.revalidator.get_then_refresh(
            keys.history_key(user_name),
            fetch,
            self.ttls.history,
            on_update=on_update,
            current=current,
            default=[],
            scope=scope,
            resource="history",
        )

    async def titles(
        self,
        event: str = keys.GLOBAL_EVENT,
        *,
        on_update: Optional[StateCallback] = None,
        scope: Optional[RefreshScope] = None,
        current: Optional[List[Any]] = None,
    ) -> ResourceState:

        async def fetch() -> List[dict]:
            return dump_list(await self.client.get_rankings(event))

        return await self.revalidator.get_then_refresh(
            keys.titles_key(event),
            fetch,
            self.ttls.titles,
            on_update=on_update,
            current=current,
            default=[],
            scope=scope,
            resource="titles",
        )

    async def invalidate_after_scan(self, user_name: str, event: str) -> List[str]:
        """Drop every cached resource a check-in/out may have changed."""
        affected = keys.keys_affected_by_scan(user_name, event)
        invalidated = await self.revalidator.cache.invalidate_many(affected)
        self.logger.info("Invalidated cached resources after scan", count=len(invalidated))
        return invalidated
