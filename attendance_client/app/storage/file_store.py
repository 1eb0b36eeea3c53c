"""
JSON file backed key-value store.
"""

from __future__ import annotations

import asyncio
import json
import os
import threading
from pathlib import Path
from typing import Dict, Optional, Union

from shared.errors import StorageError
from shared.logging import get_logger

from .base import KeyValueStore


class FileStore(KeyValueStore):
    """
    Persists every key in a single JSON object on disk.

    This is the device-local store used by the command line client. Each
    operation re-reads the file so that separate processes observe each
    other's writes; writes go through a temporary file and an atomic rename.
    A corrupt file is reported once and then treated as empty.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)
        self._lock = threading.Lock()
        self.logger = get_logger("attendance.storage.file")

    @property
    def path(self) -> Path:
        """Return the resolved path to the data file."""
        return self._path

    async def get_item(self, key: str) -> Optional[str]:
        data = await asyncio.to_thread(self._read)
        return data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._update, key, value)

    async def remove_item(self, key: str) -> None:
        await asyncio.to_thread(self._update, key, None)

    def _read(self) -> Dict[str, str]:
        with self._lock:
            return self._load()

    def _update(self, key: str, value: Optional[str]) -> None:
        with self._lock:
            data = self._load()
            if value is None:
                if key not in data:
                    return
                data.pop(key)
            else:
                data[key] = value
            self._write(data)

    def _load(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}

        try:
            with self._path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except ValueError:
            self.logger.warning("Store file is not valid JSON, starting empty", path=str(self._path))
            return {}
        except OSError as exc:
            raise StorageError(f"Failed to read {self._path}", details={"error": str(exc)}) from exc

        if not isinstance(payload, dict):
            self.logger.warning("Store file has unexpected shape, starting empty", path=str(self._path))
            return {}
        return {str(k): v for k, v in payload.items() if isinstance(v, str)}

    def _write(self, data: Dict[str, str]) -> None:
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as handle:
                json.dump(data, handle, ensure_ascii=False)
            os.replace(tmp_path, self._path)
        except OSError as exc:
            raise StorageError(f"Failed to write {self._path}", details={"error": str(exc)}) from exc
