"""
Key-value store interface.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStore(ABC):
    """Persistent text key-value store.

    Backends are reliable but not transactional; there is no multi-key
    atomicity. Failures are raised as ``shared.errors.StorageError``.
    """

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        """Return the stored text, or None if the key is absent."""

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """Store text under key, replacing any previous value."""

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        """Delete key. Absent keys are ignored."""

    async def health_check(self) -> bool:
        """Return True if the backend is reachable."""
        return True

    async def close(self) -> None:
        """Release backend resources."""
        return None
