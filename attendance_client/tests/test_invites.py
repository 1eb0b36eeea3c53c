"""
Unit tests for invite banner, sending and polling.
"""

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock

from attendance_client.app.domain.invites import InviteBanner, InvitePoller, latest_invite
from attendance_client.app.models import Invite, parse_list
from attendance_client.app.session.user_session import UserSession
from attendance_client.app.storage.memory_store import MemoryStore
from shared.errors import ExternalServiceError, ValidationError
from shared.test_helpers import FakeClock, TestDataFactory

# FakeClock() starts at 2023-11-14T22:13:20Z
TWO_HOURS_AGO = "2023-11-14T20:13:20Z"
SEVEN_HOURS_AGO = "2023-11-14T15:13:20Z"


def invites(timestamp):
    return parse_list(Invite, TestDataFactory.create_invites(timestamp))


class TestLatestInvite:
    """Test cases for latest_invite."""

    def test_recent_invite_shown(self):
        result = latest_invite(invites(TWO_HOURS_AGO), FakeClock()())

        assert result.sender == "Ana"

    def test_old_invite_hidden(self):
        assert latest_invite(invites(SEVEN_HOURS_AGO), FakeClock()()) is None

    def test_only_newest_is_considered(self):
        items = list(reversed(invites(TWO_HOURS_AGO)))

        assert latest_invite(items, FakeClock()()) is None

    def test_no_invites(self):
        assert latest_invite([], FakeClock()()) is None

    def test_unparseable_timestamp(self):
        assert latest_invite([Invite(timestamp="soon", msg="x")], FakeClock()()) is None


class TestInviteBanner:
    """Test cases for InviteBanner."""

    @pytest.fixture
    def client(self):
        client = MagicMock()
        client.get_invites = AsyncMock(return_value=invites(TWO_HOURS_AGO))
        client.send_invite = AsyncMock(return_value=None)
        return client

    @pytest.fixture
    def session(self):
        session = UserSession(MemoryStore({"user_name": "Marko"}))
        session._set_name("Marko")
        return session

    @pytest.fixture
    def banner(self, client, session):
        return InviteBanner(client, session, clock=FakeClock())

    @pytest.mark.asyncio
    async def test_refresh_sets_current(self, banner):
        result = await banner.refresh()

        assert result is banner.current
        assert result.msg == "Tonight at 8"

    @pytest.mark.asyncio
    async def test_refresh_failure_keeps_current(self, banner, client):
        await banner.refresh()
        client.get_invites.side_effect = ExternalServiceError("attendance_endpoint", "offline")

        result = await banner.refresh()

        assert result.msg == "Tonight at 8"

    @pytest.mark.asyncio
    async def test_empty_reply_keeps_current(self, banner, client):
        await banner.refresh()
        client.get_invites.return_value = []

        result = await banner.refresh()

        assert result is not None
        assert result.msg == "Tonight at 8"

    @pytest.mark.asyncio
    async def test_stale_newest_invite_clears_banner(self, banner, client):
        await banner.refresh()
        client.get_invites.return_value = invites(SEVEN_HOURS_AGO)

        assert await banner.refresh() is None

    @pytest.mark.asyncio
    async def test_send_invite(self, banner, client):
        notification = await banner.send("  Pizza at 9 ")

        assert notification.kind == "success"
        client.send_invite.assert_awaited_once_with("Marko", "Pizza at 9")

    @pytest.mark.asyncio
    async def test_send_failure_notifies(self, banner, client):
        client.send_invite.side_effect = ExternalServiceError("attendance_endpoint", "offline")

        notification = await banner.send("Pizza at 9")

        assert notification.kind == "error"
        assert notification.message == "Failed to send invite"

    @pytest.mark.asyncio
    async def test_send_empty_message_rejected(self, banner, client):
        with pytest.raises(ValidationError):
            await banner.send("   ")

        client.send_invite.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_send_requires_registration(self, client):
        banner = InviteBanner(client, UserSession(MemoryStore()), clock=FakeClock())

        with pytest.raises(ValidationError):
            await banner.send("Pizza at 9")


class TestInvitePoller:
    """Test cases for InvitePoller."""

    @pytest.mark.asyncio
    async def test_polls_and_reports_changes(self):
        banner = MagicMock()
        banner.current = None
        latest = Invite(timestamp=TWO_HOURS_AGO, msg="Tonight at 8")

        async def refresh():
            banner.current = latest
            return latest

        banner.refresh = AsyncMock(side_effect=refresh)
        changes = []
        poller = InvitePoller(banner, interval_seconds=0.01, initial_delay_seconds=0, on_change=changes.append)

        poller.start()
        assert poller.running
        await asyncio.sleep(0.05)
        await poller.stop()

        assert not poller.running
        assert banner.refresh.await_count >= 2
        assert changes == [latest]

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        poller = InvitePoller(MagicMock())

        await poller.stop()

        assert not poller.running
