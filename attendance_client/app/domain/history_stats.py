"""
Visit history statistics and display formatting.
"""

import math
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import List, Optional, Sequence, Tuple, TypeVar

from ..caching.keys import GLOBAL_EVENT
from ..models import HistoryItem

T = TypeVar("T")

EMPTY_TIMESTAMP = "--:--:--"
ACTIVE_SESSION = "Active session"
MEDALS = ("🥇", "🥈", "🥉")


@dataclass(frozen=True)
class HistoryStats:
    total_visits: int
    total_hours: int


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp from the endpoint; None if missing or invalid."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _duration_seconds(start: Optional[str], end: Optional[str]) -> Optional[float]:
    started = parse_timestamp(start)
    ended = parse_timestamp(end)
    if started is None or ended is None:
        return None
    try:
        return (ended - started).total_seconds()
    except TypeError:
        # one side carries an offset and the other does not
        return None


def filter_by_event(items: Sequence[HistoryItem], event: str = GLOBAL_EVENT) -> List[HistoryItem]:
    if not event or event == GLOBAL_EVENT:
        return list(items)
    return [item for item in items if item.event == event]


def compute_stats(items: Sequence[HistoryItem], event: str = GLOBAL_EVENT) -> HistoryStats:
    """Visit count and whole hours spent, over completed sessions only."""
    selected = filter_by_event(items, event)
    total_seconds = 0.0
    for item in selected:
        if item.checkin and item.checkout:
            seconds = _duration_seconds(item.checkin, item.checkout)
            if seconds is not None:
                total_seconds += seconds

    return HistoryStats(
        total_visits=len(selected),
        total_hours=math.floor(total_seconds / 3600),
    )


def format_datetime(value: Optional[str], tz: Optional[tzinfo] = None) -> str:
    """Render as ``dd.mm.yyyy hh:mm:ss``; offset-aware values are shown in tz (local by default)."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return EMPTY_TIMESTAMP
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz)
    return parsed.strftime("%d.%m.%Y %H:%M:%S")


def format_session_duration(start: Optional[str], end: Optional[str]) -> str:
    """``[Hh ]Mm Ss`` for a finished session, ``Active session`` while still checked in."""
    if not end:
        return ACTIVE_SESSION
    seconds = _duration_seconds(start, end)
    if seconds is None or seconds < 0:
        return "0s"

    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    prefix = f"{hours}h " if hours > 0 else ""
    return f"{prefix}{minutes}m {secs}s"


def paginate(rows: Sequence[T], page: int = 1, per_page: int = 5) -> Tuple[List[T], int]:
    """Return the rows on a 1-based page and the page count (at least 1)."""
    if per_page < 1:
        raise ValueError("per_page must be positive")
    total_pages = max(1, math.ceil(len(rows) / per_page))
    page = min(max(page, 1), total_pages)
    end = page * per_page
    return list(rows[end - per_page:end]), total_pages


def rank_label(index: int) -> str:
    """Medal for the top three rows (0-based index), otherwise ``N.``."""
    if 0 <= index < len(MEDALS):
        return MEDALS[index]
    return f"{index + 1}."
