"""Tests for the in-memory and disk-backed playlist caches."""

from __future__ import annotations

import pathlib
import time

import pytest

from m3u8_filter.utils.cache import FileCache, MemoryCache, normalize_url


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def file_cache(tmp_path: pathlib.Path):
    cache = FileCache(str(tmp_path / "m3u8files"))
    yield cache
    cache.close()


def test_memory_cache_expiry(clock: FakeClock) -> None:
    """Test entries disappear once their own TTL has elapsed."""
    cache = MemoryCache(timer=clock)
    cache.put("short", b"value", ttl=10)
    cache.put("long", b"other", ttl=100)

    assert cache.get("short") == b"value"
    clock.now += 10
    assert cache.get("short") is None
    assert cache.get("long") == b"other"
    assert len(cache) == 1


def test_memory_cache_evicts_least_recently_used(clock: FakeClock) -> None:
    cache = MemoryCache(capacity=2, timer=clock)
    cache.put("a", b"1", 60)
    cache.put("b", b"2", 60)
    cache.get("a")
    cache.put("c", b"3", 60)

    assert cache.get("a") == b"1"
    assert cache.get("b") is None
    assert cache.get("c") == b"3"


def test_memory_cache_ignores_zero_ttl() -> None:
    cache = MemoryCache()
    cache.put("k", b"v", 0)
    assert cache.get("k") is None
    assert len(cache) == 0


def test_file_cache_roundtrip(file_cache: FileCache) -> None:
    """Test bytes survive a write and read through the disk store."""
    body = "#EXTM3U\n#EXTINF:5,\nsegment-é.ts".encode("utf-8")
    file_cache.put("abc", body, ttl=30)

    assert file_cache.get("abc") == body
    assert file_cache.get("missing") is None


def test_file_cache_expiry(file_cache: FileCache, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test an expired entry reads as a miss and is swept by clean_expired."""
    file_cache.put("short", b"a", ttl=5)
    file_cache.put("long", b"b", ttl=500)

    later = time.time() + 10
    monkeypatch.setattr(time, "time", lambda: later)

    assert file_cache.get("short") is None
    assert file_cache.clean_expired() == 1
    assert file_cache.get("long") == b"b"


def test_file_cache_ignores_zero_ttl(file_cache: FileCache) -> None:
    file_cache.put("k", b"v", 0)
    assert file_cache.get("k") is None
    assert file_cache.clean_expired() == 0


def test_file_cache_persists_across_instances(tmp_path: pathlib.Path) -> None:
    first = FileCache(str(tmp_path))
    first.put("key", b"body", ttl=60)
    first.close()

    second = FileCache(str(tmp_path))
    try:
        assert second.get("key") == b"body"
    finally:
        second.close()


def test_normalize_url_keeps_query_and_credentials() -> None:
    assert normalize_url("https://User:pw@Host.example/a.m3u8?x=1") == "https://User:pw@host.example/a.m3u8?x=1"
    assert normalize_url("http://host.example:80/a") == "http://host.example/a"
