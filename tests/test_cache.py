import json
import re

import pytest

from student_registry.client.cache import LocalCache
from student_registry.client.storage import FileStorage, MemoryStorage


def _blob(storage):
    return json.loads(storage.get_item("ss_cache") or "{}")


def test_entry_visible_until_expiry_then_purged(clock):
    storage = MemoryStorage()
    cache = LocalCache(storage, clock=clock)
    cache.set("students_list", [{"id": "STU1"}], 300)

    clock.advance(299)
    assert cache.get("students_list") == [{"id": "STU1"}]

    clock.advance(1)
    assert cache.get("students_list") is None
    assert "students_list" not in _blob(storage)


def test_default_ttl_and_timestamps_in_ms(clock):
    storage = MemoryStorage()
    cache = LocalCache(storage, default_ttl=60, clock=clock)
    cache.set("k", {"a": 1})

    item = _blob(storage)["k"]
    assert item["createdAt"] == 1_700_000_000_000
    assert item["expiresAt"] == 1_700_000_060_000
    assert item["value"] == {"a": 1}


def test_entries_survive_a_new_instance(clock):
    storage = MemoryStorage()
    LocalCache(storage, clock=clock).set("student_STU1", {"id": "STU1"}, 300)

    clock.advance(10)
    assert LocalCache(storage, clock=clock).get("student_STU1") == {"id": "STU1"}


def test_remove_and_clear(clock):
    storage = MemoryStorage()
    cache = LocalCache(storage, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)

    cache.remove("a")
    cache.remove("missing")
    assert cache.get("a") is None
    assert cache.get("b") == 2

    cache.clear()
    assert cache.get_stats()["total"] == 0
    assert _blob(storage) == {}


def test_oversize_blob_evicts_oldest_half(clock):
    storage = MemoryStorage()
    # five ~175 byte entries: four fit under 800 bytes, five do not
    cache = LocalCache(storage, max_bytes=800, clock=clock)
    for i in range(5):
        cache.set(f"k{i}", "x" * 100, 300)
        clock.advance(1)

    # ceil(5 / 2) = 3 oldest entries dropped
    assert sorted(cache.keys()) == ["k3", "k4"]
    assert sorted(_blob(storage)) == ["k3", "k4"]
    assert len(storage.get_item("ss_cache").encode()) <= 800


def test_eviction_repeats_until_blob_fits(clock):
    storage = MemoryStorage()
    cache = LocalCache(storage, max_bytes=600, clock=clock)
    for i in range(3):
        cache.set(f"k{i}", "x" * 100, 300)
        clock.advance(1)
    assert len(cache.keys()) == 3

    cache.set("big", "y" * 600, 300)
    assert cache.keys() == []
    assert _blob(storage) == {}


def test_quota_exceeded_drops_everything(clock):
    storage = MemoryStorage(quota_bytes=300)
    cache = LocalCache(storage, clock=clock)
    cache.set("small", "ok", 300)
    assert cache.get("small") == "ok"

    cache.set("large", "z" * 1000, 300)
    assert cache.get("small") is None
    assert cache.get("large") is None
    assert cache.get_stats()["total"] == 0
    assert storage.get_item("ss_cache") == "{}"


def test_corrupt_blob_is_discarded(clock):
    storage = MemoryStorage()
    storage.set_item("ss_cache", "{not json")
    cache = LocalCache(storage, clock=clock)
    assert cache.get_stats()["total"] == 0

    cache.set("k", 1)
    assert cache.get("k") == 1


def test_malformed_entries_are_skipped(clock):
    storage = MemoryStorage()
    storage.set_item("ss_cache", json.dumps({
        "good": {"value": 1, "createdAt": 1, "expiresAt": 1_800_000_000_000},
        "no_expiry": {"value": 2},
        "text_created": {"value": "x", "createdAt": "yesterday", "expiresAt": 1_800_000_000_000},
        "not_a_dict": 3,
    }))
    cache = LocalCache(storage, max_bytes=200, clock=clock)
    assert cache.keys() == ["good"]
    assert cache.get("good") == 1

    # eviction sorts by createdAt; a skipped text stamp cannot break it
    cache.set("new", "y" * 100, 300)
    assert cache.keys() == ["new"]


def test_undecodable_slot_file_starts_empty(tmp_path, clock):
    (tmp_path / "ss_cache.json").write_bytes(b"\xff\xfe{garbage")
    cache = LocalCache(FileStorage(str(tmp_path)), clock=clock)
    assert cache.get_stats()["total"] == 0

    cache.set("k", 1)
    assert LocalCache(FileStorage(str(tmp_path)), clock=clock).get("k") == 1


def test_disabled_cache_stores_nothing(clock):
    storage = MemoryStorage()
    cache = LocalCache(storage, enabled=False, clock=clock)
    cache.set("k", 1)
    assert cache.get("k") is None
    assert "k" not in _blob(storage)


def test_unserializable_value_is_rejected_before_write(clock):
    storage = MemoryStorage()
    cache = LocalCache(storage, clock=clock)
    cache.set("k", 1)
    with pytest.raises(TypeError):
        cache.set("bad", {1, 2})
    assert sorted(_blob(storage)) == ["k"]


def test_invalidate_pattern(clock):
    cache = LocalCache(MemoryStorage(), clock=clock)
    cache.set("student_STU1", {})
    cache.set("student_STU2", {})
    cache.set("students_list", [])

    assert cache.invalidate_pattern(r"^student_") == 2
    assert cache.keys() == ["students_list"]
    assert cache.invalidate_pattern(re.compile("list$")) == 1
    assert cache.keys() == []


def test_stats_report_remaining_ttl(clock):
    cache = LocalCache(MemoryStorage(), clock=clock)
    cache.set("k", [1, 2, 3], 120)
    clock.advance(30.5)

    stats = cache.get_stats()
    assert stats["total"] == 1
    assert stats["size"] > 0
    entry = stats["entries"]["k"]
    assert entry["ttl_seconds_remaining"] == 89
    assert entry["created_at"].startswith("2023-11-14T22:13:20")
