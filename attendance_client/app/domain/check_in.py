"""
Check-in / check-out submission.
"""

import time
from typing import Callable, Optional, TYPE_CHECKING

from shared.errors import ExternalServiceError, ValidationError
from shared.logging import get_logger

from ..adapters.attendance_client import AttendanceApiClient
from ..models import ScanOutcome, ScanStatus
from ..session.user_session import UserSession
from .resources import AttendanceResources

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


CHECKOUT_MARKER = "Checkout"
SUCCESS_MARKER = "Success"
CONNECTION_ERROR_MESSAGE = "Connection error."


class ScanGate:
    """
    Local duplicate-scan suppression.

    Only one scan may be in flight, and after it finishes further scans are
    ignored for ``cooldown_seconds``. A camera keeps reporting the same code
    while it stays in view, so this stops one sighting turning into several
    submissions.
    """

    def __init__(self, cooldown_seconds: float = 3.0, clock: Callable[[], float] = time.monotonic):
        self.cooldown_seconds = cooldown_seconds
        self.clock = clock
        self._processing = False
        self._blocked_until = 0.0

    @property
    def is_processing(self) -> bool:
        return self._processing

    def try_acquire(self) -> bool:
        if self._processing or self.clock() < self._blocked_until:
            return False
        self._processing = True
        return True

    def release(self) -> None:
        self._processing = False
        self._blocked_until = self.clock() + self.cooldown_seconds


def classify_response(event: str, text: str) -> ScanOutcome:
    """Map the endpoint's plain-text reply to an outcome."""
    if CHECKOUT_MARKER in text:
        return ScanOutcome(
            status=ScanStatus.CHECKED_OUT,
            event=event,
            message=f"Checked out: {event}",
            raw_response=text,
        )
    if SUCCESS_MARKER in text:
        return ScanOutcome(
            status=ScanStatus.CHECKED_IN,
            event=event,
            message=f"Checked in: {event}",
            raw_response=text,
        )
    # e.g. the endpoint's duplicate-scan notice
    return ScanOutcome(status=ScanStatus.INFO, event=event, message=text.strip(), raw_response=text)


class CheckInService:
    """Submits scanned event codes and keeps cached resources honest afterwards."""

    def __init__(
        self,
        client: AttendanceApiClient,
        resources: AttendanceResources,
        session: UserSession,
        *,
        gate: Optional[ScanGate] = None,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.client = client
        self.resources = resources
        self.session = session
        self.gate = gate or ScanGate()
        self.metrics = metrics
        self.logger = get_logger("attendance.domain.check_in")

    async def submit_scan(self, scanned: str) -> ScanOutcome:
        """
        Submit a scanned event code for the current user.

        Raises ValidationError when nobody is registered or the code is
        empty. Network failures are returned as an ``error`` outcome so the
        user can retry by hand; they are never silent.
        """
        user_name = self.session.user_name
        if not user_name:
            raise ValidationError("Register a name before scanning")

        event = (scanned or "").strip()
        if not event:
            raise ValidationError("Scanned code is empty")

        if not self.gate.try_acquire():
            self.logger.debug("Scan ignored while another is in progress", event_name=event)
            return self._finish(ScanOutcome(
                status=ScanStatus.IGNORED,
                event=event,
                message="Scan already in progress",
            ))

        try:
            try:
                text = await self.client.submit_scan(user_name, event)
            except ExternalServiceError as e:
                self.logger.warning("Scan submission failed", event_name=event, error=e.message)
                return self._finish(ScanOutcome(
                    status=ScanStatus.ERROR,
                    event=event,
                    message=CONNECTION_ERROR_MESSAGE,
                ))

            outcome = classify_response(event, text)
            if outcome.succeeded:
                await self.resources.invalidate_after_scan(user_name, event)

            self.logger.info("Scan submitted", event_name=event, status=outcome.status.value)
            return self._finish(outcome)
        finally:
            self.gate.release()

    def _finish(self, outcome: ScanOutcome) -> ScanOutcome:
        if self.metrics:
            self.metrics.increment_counter("scan_submissions_total", outcome=outcome.status.value)
        return outcome
