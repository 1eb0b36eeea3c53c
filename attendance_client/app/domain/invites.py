"""
Invite broadcasts: the latest-invite banner and sending invites.
"""

import asyncio
import time
from typing import Callable, Optional, Sequence

from shared.errors import ExternalServiceError, ValidationError
from shared.logging import get_logger

from ..adapters.attendance_client import AttendanceApiClient
from ..models import Invite, Notification
from ..session.user_session import UserSession
from .history_stats import parse_timestamp

BannerListener = Callable[[Optional[Invite]], None]


def latest_invite(invites: Sequence[Invite], now: float, recent_hours: float = 6.0) -> Optional[Invite]:
    """The newest invite if it was sent within ``recent_hours`` of now (epoch seconds)."""
    if not invites:
        return None

    newest = invites[0]
    sent_at = parse_timestamp(newest.timestamp)
    if sent_at is None:
        return None

    # naive timestamps are local time, as on the device that sent them
    age_hours = abs(now - sent_at.timestamp()) / 3600
    return newest if age_hours < recent_hours else None


class InviteBanner:
    """Tracks which invite, if any, the banner should show."""

    def __init__(
        self,
        client: AttendanceApiClient,
        session: UserSession,
        *,
        recent_hours: float = 6.0,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.session = session
        self.recent_hours = recent_hours
        self.clock = clock
        self.current: Optional[Invite] = None
        self.logger = get_logger("attendance.domain.invites")

    async def refresh(self) -> Optional[Invite]:
        """Re-read invites. Failures keep the current banner and are only logged."""
        try:
            invites = await self.client.get_invites()
        except Exception as e:
            self.logger.warning("Invite fetch suppressed", error=str(e))
            return self.current

        # an empty reply leaves the banner as it is
        if not invites:
            return self.current

        self.current = latest_invite(invites, self.clock(), self.recent_hours)
        return self.current

    async def send(self, message: str) -> Notification:
        """Broadcast an invite from the current user."""
        text = (message or "").strip()
        if not text:
            raise ValidationError("Invite message is empty")
        if not self.session.user_name:
            raise ValidationError("Register a name before sending invites")

        try:
            await self.client.send_invite(self.session.user_name, text)
        except ExternalServiceError as e:
            self.logger.warning("Invite send failed", error=e.message)
            return Notification(message="Failed to send invite", kind="error")

        self.logger.info("Invite sent")
        return Notification(message="Invite sent", kind="success")


class InvitePoller:
    """Refreshes the banner after an initial delay and then on a fixed interval."""

    def __init__(
        self,
        banner: InviteBanner,
        *,
        interval_seconds: float = 30.0,
        initial_delay_seconds: float = 1.0,
        on_change: Optional[BannerListener] = None,
    ):
        self.banner = banner
        self.interval_seconds = interval_seconds
        self.initial_delay_seconds = initial_delay_seconds
        self.on_change = on_change
        self._task: Optional[asyncio.Task] = None
        self.logger = get_logger("attendance.domain.invites.poller")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        self.logger.debug("Invite poller started", interval=self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self.logger.debug("Invite poller stopped")

    async def _run(self) -> None:
        await asyncio.sleep(self.initial_delay_seconds)
        while True:
            previous = self.banner.current
            current = await self.banner.refresh()
            if current != previous and self.on_change is not None:
                self.on_change(current)
            await asyncio.sleep(self.interval_seconds)
