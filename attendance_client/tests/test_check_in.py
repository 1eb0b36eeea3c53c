"""
Unit tests for scan submission.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from attendance_client.app.domain.check_in import (
    CONNECTION_ERROR_MESSAGE,
    CheckInService,
    ScanGate,
    classify_response,
)
from attendance_client.app.models import ScanStatus
from attendance_client.app.session.user_session import UserSession
from attendance_client.app.storage.memory_store import MemoryStore
from shared.errors import ExternalServiceError, ValidationError
from shared.metrics import MetricsCollector
from shared.test_helpers import FakeClock


class TestClassifyResponse:
    """Test cases for classify_response."""

    def test_success_is_check_in(self):
        outcome = classify_response("Track Day", "Success")

        assert outcome.status == ScanStatus.CHECKED_IN
        assert outcome.message == "Checked in: Track Day"
        assert outcome.to_notification().kind == "success"

    def test_checkout_wins_over_success(self):
        outcome = classify_response("Track Day", "Success: Checkout recorded")

        assert outcome.status == ScanStatus.CHECKED_OUT
        assert outcome.message == "Checked out: Track Day"

    def test_other_text_is_informational(self):
        outcome = classify_response("Track Day", "  Already scanned recently \n")

        assert outcome.status == ScanStatus.INFO
        assert outcome.message == "Already scanned recently"
        assert not outcome.succeeded
        assert outcome.to_notification().kind == "info"


class TestScanGate:
    """Test cases for ScanGate."""

    def test_blocks_while_processing_and_during_cooldown(self):
        clock = FakeClock(0.0)
        gate = ScanGate(3.0, clock=clock)

        assert gate.try_acquire()
        assert gate.is_processing
        assert not gate.try_acquire()

        gate.release()
        clock.advance(2.9)
        assert not gate.try_acquire()

        clock.advance(0.1)
        assert gate.try_acquire()


class TestCheckInService:
    """Test cases for CheckInService."""

    @pytest.fixture
    def session(self):
        session = UserSession(MemoryStore({"user_name": "Ana"}))
        session._set_name("Ana")
        return session

    @pytest.fixture
    def client(self):
        client = MagicMock()
        client.submit_scan = AsyncMock(return_value="Success")
        return client

    @pytest.fixture
    def resources(self):
        resources = MagicMock()
        resources.invalidate_after_scan = AsyncMock(return_value=[])
        return resources

    @pytest.fixture
    def clock(self):
        return FakeClock(0.0)

    @pytest.fixture
    def metrics(self):
        return MetricsCollector("attendance-test")

    @pytest.fixture
    def service(self, client, resources, session, clock, metrics):
        return CheckInService(client, resources, session, gate=ScanGate(3.0, clock=clock), metrics=metrics)

    @pytest.mark.asyncio
    async def test_successful_scan_invalidates_resources(self, service, client, resources):
        outcome = await service.submit_scan(" Track Day ")

        assert outcome.status == ScanStatus.CHECKED_IN
        client.submit_scan.assert_awaited_once_with("Ana", "Track Day")
        resources.invalidate_after_scan.assert_awaited_once_with("Ana", "Track Day")

    @pytest.mark.asyncio
    async def test_checkout_invalidates_resources(self, service, client, resources):
        client.submit_scan.return_value = "Checkout OK"

        outcome = await service.submit_scan("Track Day")

        assert outcome.status == ScanStatus.CHECKED_OUT
        resources.invalidate_after_scan.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_informational_reply_keeps_cache(self, service, client, resources):
        client.submit_scan.return_value = "Already scanned"

        outcome = await service.submit_scan("Track Day")

        assert outcome.status == ScanStatus.INFO
        resources.invalidate_after_scan.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_network_failure_is_reported(self, service, client, resources):
        client.submit_scan.side_effect = ExternalServiceError("attendance_endpoint", "offline")

        outcome = await service.submit_scan("Track Day")

        assert outcome.status == ScanStatus.ERROR
        assert outcome.message == CONNECTION_ERROR_MESSAGE
        assert outcome.to_notification().kind == "error"
        resources.invalidate_after_scan.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_repeat_scan_within_cooldown_is_ignored(self, service, client, clock):
        await service.submit_scan("Track Day")
        clock.advance(1)

        outcome = await service.submit_scan("Track Day")

        assert outcome.status == ScanStatus.IGNORED
        assert client.submit_scan.await_count == 1

        clock.advance(3)
        assert (await service.submit_scan("Track Day")).status == ScanStatus.CHECKED_IN

    @pytest.mark.asyncio
    async def test_gate_released_after_failure(self, service, client, clock):
        client.submit_scan.side_effect = ExternalServiceError("attendance_endpoint", "offline")
        await service.submit_scan("Track Day")

        assert not service.gate.is_processing
        clock.advance(3)
        client.submit_scan.side_effect = None
        assert (await service.submit_scan("Track Day")).status == ScanStatus.CHECKED_IN

    @pytest.mark.asyncio
    async def test_unregistered_user_rejected(self, client, resources):
        service = CheckInService(client, resources, UserSession(MemoryStore()))

        with pytest.raises(ValidationError):
            await service.submit_scan("Track Day")

        client.submit_scan.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_code_rejected(self, service, client):
        with pytest.raises(ValidationError):
            await service.submit_scan("   ")

        client.submit_scan.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_outcomes_are_counted(self, service, client, clock, metrics):
        await service.submit_scan("Track Day")
        await service.submit_scan("Track Day")

        assert metrics.sample_value("scan_submissions_total", outcome="checked_in") == 1.0
        assert metrics.sample_value("scan_submissions_total", outcome="ignored") == 1.0
