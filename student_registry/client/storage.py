"""Slot-based persistent key-value storage used by the client cache and session."""

import os
import re
import tempfile
from pathlib import Path
from typing import Dict, Optional

DEFAULT_QUOTA_BYTES = 10 * 1024 * 1024

_SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")


class QuotaExceededError(OSError):
    pass


class MemoryStorage:
    """Process-local storage; handy for tests and throwaway clients."""

    def __init__(self, quota_bytes: int = DEFAULT_QUOTA_BYTES):
        self.quota_bytes = quota_bytes
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        size = len(value.encode("utf-8"))
        if size > self.quota_bytes:
            raise QuotaExceededError(f"{key}: {size} bytes exceeds quota of {self.quota_bytes}")
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileStorage:
    """One file per slot under `directory`; writes go through a temp file + replace."""

    def __init__(self, directory: str, quota_bytes: int = DEFAULT_QUOTA_BYTES):
        self.directory = Path(directory)
        self.quota_bytes = quota_bytes

    def _path(self, key: str) -> Path:
        return self.directory / f"{_SAFE_KEY.sub('_', key)}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set_item(self, key: str, value: str) -> None:
        data = value.encode("utf-8")
        if len(data) > self.quota_bytes:
            raise QuotaExceededError(f"{key}: {len(data)} bytes exceeds quota of {self.quota_bytes}")
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp, self._path(key))
        except BaseException:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise

    def remove_item(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass
