"""
Key-value store backends.

All backends speak the same async text interface (``get_item``,
``set_item``, ``remove_item``) and raise ``StorageError`` on failure.
"""

from .base import KeyValueStore
from .memory_store import MemoryStore
from .file_store import FileStore
from .redis_store import RedisStore

__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "FileStore",
    "RedisStore",
    "create_store",
]


def create_store(config) -> KeyValueStore:
    """Build the store selected by ``config.store_backend``."""
    backend = config.store_backend.lower()
    if backend == "memory":
        return MemoryStore()
    if backend == "file":
        return FileStore(config.store_path)
    if backend == "redis":
        return RedisStore(config.redis_url)
    raise ValueError(f"Unknown store backend: {config.store_backend}")
