"""
Unit tests for attendance resources and scan invalidation.
"""

import json
import httpx
import pytest
from unittest.mock import AsyncMock, patch

from attendance_client.app.adapters.attendance_client import AttendanceApiClient
from attendance_client.app.caching import keys
from attendance_client.app.caching.expiring_cache import ExpiringCache
from attendance_client.app.domain.resources import AttendanceResources, ResourceTtls
from attendance_client.app.storage.memory_store import MemoryStore
from attendance_client.app.sync.revalidator import SOURCE_NETWORK, StaleWhileRevalidate
from shared.config import get_config
from shared.errors import StorageError
from shared.test_helpers import FakeClock, MockEndpoint, TestDataFactory


class TestCacheKeys:
    """Test cases for cache key builders."""

    def test_key_formats(self):
        assert keys.event_list_key() == "cached_event_list"
        assert keys.leaderboard_key("Track Day") == "cached_board_Track Day"
        assert keys.history_key(" Ana ") == "cache_history_Ana"
        assert keys.titles_key("") == "cached_titles_Global Overall"

    def test_keys_affected_by_event_scan(self):
        assert keys.keys_affected_by_scan("Ana", "Track Day") == [
            "cache_history_Ana",
            "cached_board_Global Overall",
            "cached_titles_Global Overall",
            "cached_board_Track Day",
            "cached_titles_Track Day",
        ]

    def test_keys_affected_by_global_scan(self):
        assert len(keys.keys_affected_by_scan("Ana", "Global Overall")) == 3


class TestAttendanceResources:
    """Test cases for AttendanceResources."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def store(self):
        return MemoryStore()

    @pytest.fixture
    def endpoint(self):
        return MockEndpoint({
            "getEventList": ["Track Day", "Global Overall", "Friday Meetup"],
            "getLeaderboard": TestDataFactory.create_leaderboard(4),
            "getUserData": TestDataFactory.create_history(),
            "getRankings": TestDataFactory.create_titles(),
        })

    @pytest.fixture
    def cache(self, store, clock):
        return ExpiringCache(store, clock=clock)

    @pytest.fixture
    def resources(self, endpoint, cache, clock):
        client = AttendanceApiClient("https://script.example.com/exec", transport=endpoint.transport, clock=clock)
        return AttendanceResources(client, StaleWhileRevalidate(cache))

    @pytest.mark.asyncio
    async def test_event_list_puts_global_first(self, resources, cache):
        state = await resources.event_list()

        assert state.value == ["Global Overall", "Track Day", "Friday Meetup"]
        assert await cache.get("cached_event_list") == state.value

    @pytest.mark.asyncio
    async def test_event_list_offline_default(self, resources, endpoint):
        endpoint.replies["getEventList"] = httpx.ConnectError("offline")

        state = await resources.event_list()

        assert state.value == ["Global Overall"]
        assert state.error

    @pytest.mark.asyncio
    async def test_leaderboard_cached_with_endpoint_field_names(self, resources, store):
        state = await resources.leaderboard("Global Overall")

        assert state.source == SOURCE_NETWORK
        assert state.value[0] == {"name": "Ana", "total": 4, "timeStr": "4h 0m"}
        entry = json.loads(await store.get_item("cached_board_Global Overall"))
        assert entry["value"] == state.value

    @pytest.mark.asyncio
    async def test_leaderboard_cached_then_refreshed(self, resources, cache):
        await cache.set("cached_board_Global Overall", TestDataFactory.create_leaderboard(3), 10)
        totals = []

        await resources.leaderboard(on_update=lambda s: totals.append(s.value[0]["total"]))

        assert totals == [3, 4]

    @pytest.mark.asyncio
    async def test_history_ttl(self, resources, cache, clock):
        await resources.history("Ana")

        clock.advance(9 * 60)
        assert await cache.get("cache_history_Ana") is not None
        clock.advance(60)
        assert await cache.get("cache_history_Ana") is None

    @pytest.mark.asyncio
    async def test_titles_for_event(self, resources, endpoint):
        state = await resources.titles("Track Day")

        assert state.key == "cached_titles_Track Day"
        assert [t["title"] for t in state.value] == ["Most Reliable", "Ghost"]
        assert endpoint.calls("getRankings")[0].url.params["event"] == "Track Day"

    @pytest.mark.asyncio
    async def test_invalidate_after_scan(self, resources, cache):
        for key in keys.keys_affected_by_scan("Ana", "Track Day"):
            await cache.set(key, ["stale"], 10)
        await cache.set("cached_event_list", ["Global Overall"], 60)

        invalidated = await resources.invalidate_after_scan("Ana", "Track Day")

        assert len(invalidated) == 5
        for key in invalidated:
            assert await cache.get(key) is None
        assert await cache.get("cached_event_list") == ["Global Overall"]

    @pytest.mark.asyncio
    async def test_invalidate_continues_past_storage_errors(self, resources, store):
        with patch.object(store, "remove_item", new_callable=AsyncMock) as mock_remove:
            mock_remove.side_effect = [StorageError("busy"), None, None]

            invalidated = await resources.invalidate_after_scan("Ana", "Global Overall")

        assert invalidated == ["cached_board_Global Overall", "cached_titles_Global Overall"]


class TestResourceTtls:
    """Test cases for ResourceTtls."""

    def test_defaults_match_config(self):
        assert ResourceTtls.from_config(get_config()) == ResourceTtls()

    def test_overrides(self):
        ttls = ResourceTtls.from_config(get_config(leaderboard_ttl_minutes=1))

        assert ttls.leaderboard == 1
