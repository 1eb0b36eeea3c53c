"""
Process-wide user session.
"""

from typing import Callable, List, Optional

from shared.errors import StorageError, ValidationError
from shared.logging import get_logger, set_user_context

from ..caching.keys import USER_NAME_KEY
from ..storage.base import KeyValueStore

MIN_NAME_LENGTH = 2

NameListener = Callable[[Optional[str]], None]


class UserSession:
    """
    Holds the current user name and tells subscribers when it changes.

    The name is persisted in the store under ``user_name`` so it survives
    restarts. Consumers subscribe instead of polling the store.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.logger = get_logger("attendance.session")
        self._name: Optional[str] = None
        self._listeners: List[NameListener] = []

    @property
    def user_name(self) -> Optional[str]:
        return self._name

    @property
    def is_registered(self) -> bool:
        return bool(self._name)

    def subscribe(self, listener: NameListener) -> Callable[[], None]:
        """Register a change listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def load(self) -> Optional[str]:
        """Restore the persisted name. A store failure leaves the session unregistered."""
        try:
            saved = await self.store.get_item(USER_NAME_KEY)
        except StorageError as e:
            self.logger.error("Failed to load user", error=e.message)
            return self._name

        self._set_name(saved.strip() if saved and saved.strip() else None)
        return self._name

    async def register(self, name: str) -> str:
        """Persist and activate a user name."""
        trimmed = (name or "").strip()
        if len(trimmed) < MIN_NAME_LENGTH:
            raise ValidationError(
                "Enter a name",
                details={"min_length": MIN_NAME_LENGTH}
            )

        await self.store.set_item(USER_NAME_KEY, trimmed)
        self._set_name(trimmed)
        self.logger.info("User registered", user_name=trimmed)
        return trimmed

    async def clear(self) -> None:
        await self.store.remove_item(USER_NAME_KEY)
        self._set_name(None)

    def _set_name(self, name: Optional[str]) -> None:
        if name == self._name:
            return
        self._name = name
        set_user_context(name)
        for listener in list(self._listeners):
            listener(name)
