"""
JSON File Storage Implementation

DESIGN DECISION: A single local JSON object file is the default durable
store because:
1. The user can open and read their data directly
2. No database setup required
3. Easy to back up or move to another machine

TRADEOFFS:
- Every write rewrites the whole file (fine for a personal ledger)
- No cross-process locking (one app session owns the file)

Writes go to a temporary sibling file first and are moved into place
with os.replace, so a crash mid-write never leaves a half-written file.
File I/O (and the retry backoff) runs in a worker thread via
asyncio.to_thread so a slow disk never stalls the event loop; a thread
lock keeps concurrent read-modify-write cycles from interleaving.
"""

import asyncio
import json
import os
import threading
from pathlib import Path
from typing import Optional, Union

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from finance_tracker.services.storage.interface import (
    CorruptDataError,
    KeyValueStoreInterface,
    StorageError,
)


_io_retry = retry(
    retry=retry_if_exception_type(OSError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
    reraise=True,
)


class JsonFileKeyValueStore(KeyValueStoreInterface):
    """
    Key-value store persisted as one JSON object on disk.

    The file is read on every get so that an external edit is picked up,
    and rewritten on every set/remove.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)
        self._file_lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    @_io_retry
    def _read_text(self) -> Optional[str]:
        try:
            return self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    @_io_retry
    def _write_text(self, content: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(content, encoding="utf-8")
        os.replace(tmp_path, self._path)

    def _load(self) -> dict[str, str]:
        try:
            content = self._read_text()
        except OSError as e:
            raise StorageError(f"Failed to read {self._path}: {e}")

        if not content or not content.strip():
            return {}

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise CorruptDataError(f"Storage file {self._path} is not valid JSON: {e}")

        if not isinstance(data, dict):
            raise CorruptDataError(f"Storage file {self._path} does not hold a JSON object")
        # Hand-edited files may hold raw JSON values instead of encoded strings
        return {
            str(key): value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
            for key, value in data.items()
        }

    def _dump(self, data: dict[str, str]) -> None:
        try:
            self._write_text(json.dumps(data, ensure_ascii=False, indent=2))
        except OSError as e:
            raise StorageError(f"Failed to write {self._path}: {e}")

    def _update(self, key: str, value: Optional[str]) -> None:
        """Read-modify-write one key. None removes it."""
        with self._file_lock:
            data = self._load()
            if value is not None:
                data[key] = value
            elif key in data:
                del data[key]
            else:
                return
            self._dump(data)

    async def get_item(self, key: str) -> Optional[str]:
        data = await asyncio.to_thread(self._load)
        return data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._update, key, value)

    async def remove_item(self, key: str) -> None:
        await asyncio.to_thread(self._update, key, None)
