"""
Cache key builders for attendance resources.
"""

GLOBAL_EVENT = "Global Overall"

EVENT_LIST_KEY = "cached_event_list"
BOARD_CACHE_PREFIX = "cached_board_"
HISTORY_CACHE_PREFIX = "cache_history_"
TITLES_CACHE_PREFIX = "cached_titles_"
USER_NAME_KEY = "user_name"


def event_list_key() -> str:
    return EVENT_LIST_KEY


def leaderboard_key(event: str = GLOBAL_EVENT) -> str:
    return f"{BOARD_CACHE_PREFIX}{event or GLOBAL_EVENT}"


def history_key(user_name: str) -> str:
    return f"{HISTORY_CACHE_PREFIX}{user_name.strip()}"


def titles_key(event: str = GLOBAL_EVENT) -> str:
    return f"{TITLES_CACHE_PREFIX}{event or GLOBAL_EVENT}"


def event_filter(event: str) -> str:
    """Query value the endpoint expects; the global aggregate is an empty filter."""
    return "" if not event or event == GLOBAL_EVENT else event


def keys_affected_by_scan(user_name: str, event: str) -> list:
    """Every cached resource a check-in or check-out can change."""
    keys = [
        history_key(user_name),
        leaderboard_key(GLOBAL_EVENT),
        titles_key(GLOBAL_EVENT),
    ]
    if event and event != GLOBAL_EVENT:
        keys.extend([leaderboard_key(event), titles_key(event)])
    return keys
