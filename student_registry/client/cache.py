"""
Persistent client-side cache with per-entry expiry.

The whole mapping is stored as one JSON blob in a single storage slot:

    {"students_list": {"value": [...], "createdAt": 1700000000000, "expiresAt": 1700000300000}}

Timestamps are epoch milliseconds. An entry is visible while now < expiresAt
and is purged lazily the next time it is read.
"""

import json
import logging
import math
import re
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Pattern, Union

from student_registry.client.storage import QuotaExceededError

logger = logging.getLogger("registry.cache")

STORAGE_KEY = "ss_cache"
MAX_BYTES = 5 * 1024 * 1024
DEFAULT_TTL_SECONDS = 5 * 60


def _iso(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat()


class LocalCache:
    def __init__(
        self,
        storage,
        storage_key: str = STORAGE_KEY,
        enabled: bool = True,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        max_bytes: int = MAX_BYTES,
        clock: Callable[[], float] = time.time,
    ):
        self.storage = storage
        self.storage_key = storage_key
        self.enabled = enabled
        self.default_ttl = default_ttl
        self.max_bytes = max_bytes
        self._clock = clock
        self._entries: Dict[str, Dict[str, Any]] = self._load()

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def get(self, key: str) -> Optional[Any]:
        if not self.enabled:
            return None
        item = self._entries.get(key)
        if item is None:
            return None
        if self._now_ms() >= item["expiresAt"]:
            del self._entries[key]
            self._save()
            logger.debug("Cache expired for key: %s", key)
            return None
        logger.debug("Cache hit for key: %s", key)
        return item["value"]

    def set(self, key: str, value: Any, duration: Optional[float] = None) -> None:
        """Store `value` for `duration` seconds (default: the configured TTL)."""
        if not self.enabled:
            return
        # fail here rather than poisoning the persisted blob
        json.dumps(value)
        if duration is None:
            duration = self.default_ttl
        now = self._now_ms()
        self._entries[key] = {
            "value": value,
            "createdAt": now,
            "expiresAt": now + int(duration * 1000),
        }
        self._save()
        logger.debug("Cache set for key: %s, duration: %ss", key, duration)

    def remove(self, key: str) -> None:
        self._entries.pop(key, None)
        self._save()
        logger.debug("Cache removed for key: %s", key)

    def clear(self) -> None:
        self._entries = {}
        self._save()
        logger.debug("Cache cleared")

    def invalidate_pattern(self, pattern: Union[str, Pattern]) -> int:
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        keys = [k for k in self._entries if regex.search(k)]
        for k in keys:
            del self._entries[k]
        self._save()
        logger.debug("Invalidated %d cache entries matching %s", len(keys), regex.pattern)
        return len(keys)

    def get_stats(self) -> Dict[str, Any]:
        now = self._now_ms()
        entries = {}
        for key, item in self._entries.items():
            entries[key] = {
                "created_at": _iso(item["createdAt"]),
                "expires_at": _iso(item["expiresAt"]),
                "ttl_seconds_remaining": max(0, math.floor((item["expiresAt"] - now) / 1000)),
            }
        return {
            "total": len(self._entries),
            "size": len(self._serialize()),
            "entries": entries,
        }

    def keys(self):
        return list(self._entries)

    def _serialize(self) -> bytes:
        return json.dumps(self._entries).encode("utf-8")

    def _load(self) -> Dict[str, Dict[str, Any]]:
        try:
            stored = self.storage.get_item(self.storage_key)
        except (OSError, ValueError) as e:
            # ValueError covers a slot file that is not valid UTF-8
            logger.warning("Failed to load cache from storage: %s", e)
            return {}
        if not stored:
            return {}
        try:
            data = json.loads(stored)
        except ValueError as e:
            logger.warning("Discarding corrupt cache blob: %s", e)
            return {}
        if not isinstance(data, dict):
            return {}
        entries = {}
        for key, item in data.items():
            if not isinstance(item, dict) or "value" not in item:
                continue
            expires = item.get("expiresAt")
            created = item.get("createdAt", expires)
            # eviction orders by createdAt, so both stamps must be numbers
            if not isinstance(expires, (int, float)) or not isinstance(created, (int, float)):
                continue
            entries[key] = {**item, "createdAt": created}
        return entries

    def _evict_oldest_half(self) -> None:
        ordered = sorted(self._entries.items(), key=lambda kv: kv[1]["createdAt"])
        to_delete = math.ceil(len(ordered) / 2)
        for key, _ in ordered[:to_delete]:
            del self._entries[key]

    def _save(self) -> None:
        blob = self._serialize()
        while len(blob) > self.max_bytes and self._entries:
            logger.warning("Cache size %d exceeds limit %d, clearing old entries", len(blob), self.max_bytes)
            self._evict_oldest_half()
            blob = self._serialize()
        try:
            self.storage.set_item(self.storage_key, blob.decode("utf-8"))
        except QuotaExceededError as e:
            logger.error("Storage quota exceeded, dropping all cache entries: %s", e)
            self._entries = {}
            try:
                self.storage.set_item(self.storage_key, "{}")
            except (QuotaExceededError, OSError) as e2:
                logger.error("Failed to save empty cache: %s", e2)
        except OSError as e:
            logger.error("Failed to save cache to storage: %s", e)
