"""
Command line entry point for the attendance client.
"""

import argparse
import asyncio
import json
import sys
import time
from typing import Any, Callable, List, Optional

import httpx

from shared.config import ClientConfig, get_config
from shared.errors import AttendanceClientException
from shared.logging import configure_logging, get_logger, set_session_id
from shared.metrics import get_metrics_collector

from .adapters.attendance_client import AttendanceApiClient
from .caching.expiring_cache import ExpiringCache
from .caching.keys import GLOBAL_EVENT
from .domain.achievements import TIME_MILESTONES, VISIT_MILESTONES, milestone_progress, title_description, title_icon
from .domain.check_in import CheckInService, ScanGate
from .domain.history_stats import compute_stats, filter_by_event, format_datetime, format_session_duration, paginate, rank_label
from .domain.invites import InviteBanner, InvitePoller
from .domain.resources import AttendanceResources, ResourceTtls
from .models import HistoryItem, Invite, LeaderboardItem, ScanStatus, TitleResult, parse_list
from .session.user_session import UserSession
from .storage import KeyValueStore, create_store
from .sync.revalidator import SOURCE_CACHE, SOURCE_MEMORY, RefreshScope, ResourceState, StaleWhileRevalidate


class AttendanceApp:
    """Wires configuration, storage, cache, orchestrator, adapter and domain services."""

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        store: Optional[KeyValueStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or get_config()
        self.logger = get_logger("attendance.app")
        self.metrics = get_metrics_collector(self.config.app_name)

        self.store = store or create_store(self.config)
        self.cache = ExpiringCache(self.store, clock=clock, metrics=self.metrics)
        self.revalidator = StaleWhileRevalidate(self.cache, metrics=self.metrics)
        self.client = AttendanceApiClient(
            self.config.api_url,
            timeout=self.config.http_timeout_seconds,
            transport=transport,
            clock=clock,
        )
        self.session = UserSession(self.store)
        self.resources = AttendanceResources(
            self.client,
            self.revalidator,
            ttls=ResourceTtls.from_config(self.config),
        )
        self.check_in = CheckInService(
            self.client,
            self.resources,
            self.session,
            gate=ScanGate(self.config.scan_cooldown_seconds),
            metrics=self.metrics,
        )
        self.invites = InviteBanner(
            self.client,
            self.session,
            recent_hours=self.config.invite_recent_hours,
            clock=clock,
        )

    async def start(self) -> None:
        if not await self.store.health_check():
            self.logger.warning(
                "Local store unreachable, running without cache",
                backend=type(self.store).__name__,
            )
        await self.session.load()
        self.logger.debug("Attendance client started", registered=self.session.is_registered)

    async def close(self) -> None:
        await self.store.close()


def _state_label(state: ResourceState) -> str:
    if state.is_loading:
        return "loading"
    if state.is_refreshing:
        return "cached, refreshing" if state.source in (SOURCE_CACHE, SOURCE_MEMORY) else "refreshing"
    if state.error:
        return "offline, last known data" if state.has_value else "offline"
    return "fresh"


def _emit(args: argparse.Namespace, state: ResourceState, render: Callable[[Any], List[str]]) -> None:
    if args.json:
        print(json.dumps({
            "key": state.key,
            "source": state.source,
            "is_loading": state.is_loading,
            "is_refreshing": state.is_refreshing,
            "error": state.error,
            "value": state.value,
        }, ensure_ascii=False))
        return

    print(f"[{_state_label(state)}]")
    if state.is_loading:
        return
    for line in render(state.value):
        print(f"  {line}")


def _render_events(value: Any) -> List[str]:
    return [str(event) for event in (value or [])]


def _render_leaderboard(value: Any) -> List[str]:
    rows = parse_list(LeaderboardItem, value)
    if not rows:
        return ["No entries yet."]
    return [f"{rank_label(i)} {row.name}  {row.total}  {row.time_str}".rstrip() for i, row in enumerate(rows)]


def _render_titles(value: Any) -> List[str]:
    rows = parse_list(TitleResult, value)
    if not rows:
        return ["No titles awarded yet."]
    lines = []
    for row in rows:
        lines.append(f"{title_icon(row.title)} {row.title}: {row.winner or '-'}".strip())
        description = title_description(row.title)
        if description:
            lines.append(f"    {description}")
    return lines


def _history_renderer(event: str, page: int, per_page: int) -> Callable[[Any], List[str]]:
    def render(value: Any) -> List[str]:
        items = parse_list(HistoryItem, value)
        stats = compute_stats(items, event)
        visits = milestone_progress(stats.total_visits, VISIT_MILESTONES)
        hours = milestone_progress(stats.total_hours, TIME_MILESTONES)
        lines = [
            f"Visits: {stats.total_visits} ({visits.current.label}, next {visits.next.label} {visits.progress:.0%})",
            f"    {visits.current.subtitle}",
            f"Hours: {stats.total_hours} ({hours.current.label}, next {hours.next.label} {hours.progress:.0%})",
            f"    {hours.current.subtitle}",
        ]

        selected = filter_by_event(items, event)
        if not selected:
            lines.append("No visits yet.")
            return lines

        rows, total_pages = paginate(selected, page, per_page)
        for item in rows:
            lines.append(
                f"{item.event}: {format_datetime(item.checkin)} -> {format_datetime(item.checkout)}"
                f" ({format_session_duration(item.checkin, item.checkout)})"
            )
        lines.append(f"Page {min(max(page, 1), total_pages)}/{total_pages}")
        return lines

    return render


def _render_invite(invite: Optional[Invite]) -> str:
    if invite is None:
        return "No recent invites."
    marker = "🏆" if invite.type == "Achievement" else "🚀"
    sender = f"{invite.sender}: " if invite.sender else ""
    return f"{marker} {sender}{invite.msg}"


async def run_command(app: AttendanceApp, args: argparse.Namespace) -> int:
    """Execute one CLI command against a started app."""
    command = args.command

    if command == "register":
        name = await app.session.register(args.name)
        print(f"Welcome, {name}!")
        return 0

    if command == "whoami":
        print(app.session.user_name or "Not registered.")
        return 0 if app.session.is_registered else 1

    if command == "scan":
        outcome = await app.check_in.submit_scan(args.code)
        print(outcome.message)
        return 1 if outcome.status == ScanStatus.ERROR else 0

    if command == "invite":
        notification = await app.invites.send(args.message)
        print(notification.message)
        return 1 if notification.kind == "error" else 0

    if command == "banner":
        if not args.watch:
            print(_render_invite(await app.invites.refresh()))
            return 0

        poller = InvitePoller(
            app.invites,
            interval_seconds=app.config.invite_poll_interval_seconds,
            initial_delay_seconds=app.config.invite_initial_delay_seconds,
            on_change=lambda invite: print(_render_invite(invite), flush=True),
        )
        poller.start()
        try:
            await asyncio.Event().wait()
        finally:
            await poller.stop()
        return 0

    with RefreshScope(command) as scope:
        def on_update(render: Callable[[Any], List[str]]):
            return lambda state: _emit(args, state, render)

        if command == "events":
            await app.resources.event_list(on_update=on_update(_render_events), scope=scope)
        elif command == "leaderboard":
            await app.resources.leaderboard(args.event, on_update=on_update(_render_leaderboard), scope=scope)
        elif command == "titles":
            await app.resources.titles(args.event, on_update=on_update(_render_titles), scope=scope)
        elif command == "history":
            if not app.session.user_name:
                print("Register a name first.", file=sys.stderr)
                return 2
            render = _history_renderer(args.event, args.page, args.per_page)
            await app.resources.history(app.session.user_name, on_update=on_update(render), scope=scope)
        else:
            raise ValueError(f"Unknown command: {command}")
    return 0


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="attendance", description="Attendance tracking client.")
    parser.add_argument("--api-url", default=None, help="Attendance endpoint URL (ATTENDANCE_API_URL)")
    parser.add_argument("--store", choices=["file", "memory", "redis"], default=None, help="Local store backend")
    parser.add_argument("--log-level", default=None, help="Log level (ATTENDANCE_LOG_LEVEL)")
    parser.add_argument("--json", action="store_true", help="Print resource states as JSON lines")

    sub = parser.add_subparsers(dest="command", required=True)

    register = sub.add_parser("register", help="Register your display name")
    register.add_argument("name")

    sub.add_parser("whoami", help="Show the registered name")

    scan = sub.add_parser("scan", help="Submit a scanned event code")
    scan.add_argument("code")

    sub.add_parser("events", help="List events")

    leaderboard = sub.add_parser("leaderboard", help="Show the leaderboard")
    leaderboard.add_argument("--event", default=GLOBAL_EVENT)

    history = sub.add_parser("history", help="Show your visit history")
    history.add_argument("--event", default=GLOBAL_EVENT)
    history.add_argument("--page", type=int, default=1)
    history.add_argument("--per-page", type=int, default=5)

    titles = sub.add_parser("titles", help="Show awarded titles")
    titles.add_argument("--event", default=GLOBAL_EVENT)

    banner = sub.add_parser("banner", help="Show the latest invite")
    banner.add_argument("--watch", action="store_true", help="Keep polling for new invites")

    invite = sub.add_parser("invite", help="Broadcast an invite")
    invite.add_argument("message")

    return parser.parse_args(argv)


def _config_overrides(args: argparse.Namespace) -> dict:
    overrides = {}
    if args.api_url:
        overrides["api_url"] = args.api_url
    if args.store:
        overrides["store_backend"] = args.store
    if args.log_level:
        overrides["log_level"] = args.log_level
    return overrides


async def _run(args: argparse.Namespace) -> int:
    config = get_config(**_config_overrides(args))
    configure_logging(config.app_name, config.log_level)
    set_session_id()

    app = AttendanceApp(config)
    try:
        await app.start()
        return await run_command(app, args)
    except AttendanceClientException as e:
        print(e.to_response().model_dump_json(), file=sys.stderr)
        return 2
    finally:
        await app.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
