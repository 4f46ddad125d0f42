"""Tests for the thumbnail history store."""
import json

import pytest
from PIL import Image

from collage_backend.services.history import (
    HISTORY_KEY,
    HistoryStore,
    MemoryStorage,
    StorageQuotaExceeded,
)
from collage_shared.files import decode_data_url


class TestMemoryStorage:

    def test_quota(self):
        storage = MemoryStorage(quota_bytes=5)
        storage.set("a", "123")
        storage.set("a", "12345")
        with pytest.raises(StorageQuotaExceeded):
            storage.set("b", "1")
        assert storage.get("b") is None


class TestHistoryStore:

    def test_newest_first(self):
        store = HistoryStore(MemoryStorage())
        for item in ("a", "b", "c"):
            store.add(item)
        assert store.list() == ["c", "b", "a"]

    def test_limit_keeps_most_recent(self):
        store = HistoryStore(MemoryStorage(), limit=3)
        for item in "abcde":
            store.add(item)
        assert store.list() == ["e", "d", "c"]

    def test_quota_drops_oldest(self):
        storage = MemoryStorage(quota_bytes=50)
        store = HistoryStore(storage)
        items = [c * 20 for c in "xyz"]
        for item in items:
            store.add(item)

        assert store.list() == [items[2], items[1]]
        assert json.loads(storage.get(HISTORY_KEY)) == items[1:]

    def test_item_larger_than_quota_clears_history(self):
        storage = MemoryStorage(quota_bytes=10)
        store = HistoryStore(storage)
        store.add("q" * 20)
        assert store.list() == []
        assert storage.get(HISTORY_KEY) == "[]"

    def test_unreadable_storage_is_discarded(self):
        storage = MemoryStorage()
        storage.set(HISTORY_KEY, "{not json")
        store = HistoryStore(storage)
        assert store.list() == []
        store.add("fresh")
        assert store.list() == ["fresh"]

    def test_add_image_stores_png_thumbnail(self):
        store = HistoryStore(MemoryStorage())
        store.add_image(Image.new("RGBA", (880, 440), (255, 0, 0, 255)))

        (url,) = store.list()
        assert url.startswith("data:image/png;base64,")
        assert decode_data_url(url).size == (220, 110)

    def test_custom_key(self):
        storage = MemoryStorage()
        store = HistoryStore(storage, key="other")
        store.add("a")
        assert store.key == "other"
        assert storage.get(HISTORY_KEY) is None
