"""
Thumbnail history of analyzed canvases.

Thumbnails are PNG data URLs stored as one JSON list under a fixed key, the
way a browser keeps them in session storage. Only the most recent `limit`
are kept; when the serialized list exceeds the storage quota the oldest
entries are dropped until it fits.
"""

from __future__ import annotations

import json
import logging
import threading

from PIL import Image

from collage_shared.files import encode_png, make_thumbnail, to_data_url

logger = logging.getLogger(__name__)

HISTORY_KEY = "collage_history_dataurls"
THUMB_WIDTH = 220


class StorageQuotaExceeded(RuntimeError):
    """Raised by a storage backend when a value does not fit."""


class MemoryStorage:
    """Key-value string storage with a total size quota."""

    def __init__(self, quota_bytes: int = 5_000_000):
        self._quota = quota_bytes
        self._items: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        others = sum(len(v) for k, v in self._items.items() if k != key)
        if others + len(value) > self._quota:
            raise StorageQuotaExceeded(f"{key}: {len(value)} bytes over quota")
        self._items[key] = value


class HistoryStore:
    def __init__(self, storage: MemoryStorage, limit: int = 20, key: str = HISTORY_KEY):
        self._storage = storage
        self._limit = limit
        self._key = key
        self._lock = threading.Lock()

    @property
    def key(self) -> str:
        return self._key

    def _load(self) -> list[str]:
        raw = self._storage.get(self._key)
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable history under %s", self._key)
            return []
        return [i for i in items if isinstance(i, str)] if isinstance(items, list) else []

    def add(self, data_url: str) -> None:
        """Append a thumbnail, keeping at most `limit` and staying under quota."""
        with self._lock:
            items = self._load()
            items.append(data_url)
            if len(items) > self._limit:
                del items[: len(items) - self._limit]

            while items:
                try:
                    self._storage.set(self._key, json.dumps(items))
                    return
                except StorageQuotaExceeded as e:
                    logger.warning("History quota exceeded (%s); dropping oldest", e)
                    items.pop(0)
            self._storage.set(self._key, "[]")

    def add_image(self, img: Image.Image, width: int = THUMB_WIDTH) -> None:
        self.add(to_data_url(encode_png(make_thumbnail(img, width))))

    def list(self) -> list[str]:
        """Newest first."""
        with self._lock:
            return list(reversed(self._load()))
