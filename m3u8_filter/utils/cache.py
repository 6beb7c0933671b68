"""TTL caches for rewritten playlists, kept in memory or on disk."""

from __future__ import annotations

import hashlib
import logging
import sqlite3
import threading
import time
from typing import Callable, Optional, Protocol, Tuple
from urllib.parse import urlsplit, urlunsplit

from cachetools import TLRUCache
from diskcache import Cache, Timeout

_DEFAULT_PORTS = {"http": 80, "https": 443}


class PlaylistCache(Protocol):
    def get(self, key: str) -> Optional[bytes]:
        ...

    def put(self, key: str, value: bytes, ttl: int) -> None:
        ...


def normalize_url(url: str) -> str:
    """Canonical form of ``url`` so equivalent requests share one cache entry."""

    try:
        parts = urlsplit(url.strip())
        port = parts.port
    except ValueError:
        return url.strip()
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        host = f"{host}:{port}"
    if parts.username:
        credentials = parts.username + (f":{parts.password}" if parts.password else "")
        host = f"{credentials}@{host}"
    return urlunsplit((scheme, host, parts.path or "/", parts.query, ""))


def cache_key(url: str) -> str:
    return hashlib.sha256(normalize_url(url).encode("utf-8")).hexdigest()


def _time_to_use(_key: str, entry: Tuple[bytes, int], now: float) -> float:
    return now + entry[1]


class MemoryCache:
    """Thread-safe LRU cache with per-entry expiry."""

    def __init__(self, capacity: int = 500, timer: Callable[[], float] = time.monotonic) -> None:
        self.capacity = max(1, capacity)
        self._entries = TLRUCache(maxsize=self.capacity, ttu=_time_to_use, timer=timer)
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            entry = self._entries.get(key)
        return entry[0] if entry is not None else None

    def put(self, key: str, value: bytes, ttl: int) -> None:
        if ttl <= 0:
            return
        with self._lock:
            self._entries[key] = (value, ttl)

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)


class FileCache:
    """Disk-backed cache in ``directory``, shared across restarts."""

    def __init__(self, directory: str) -> None:
        self.directory = directory
        self._store = Cache(directory)

    def get(self, key: str) -> Optional[bytes]:
        try:
            return self._store.get(key)
        except (sqlite3.Error, Timeout) as exc:
            logging.warning("Failed to read cache entry %s: %s", key, exc)
            return None

    def put(self, key: str, value: bytes, ttl: int) -> None:
        if ttl <= 0:
            return
        try:
            self._store.set(key, value, expire=ttl)
        except (sqlite3.Error, Timeout) as exc:
            logging.warning("Unable to write cache entry %s: %s", key, exc)

    def clean_expired(self) -> int:
        """Remove expired entries and return how many were deleted."""

        removed = self._store.expire()
        if removed:
            logging.info("Cleared %s expired cache entries", removed)
        return removed

    def close(self) -> None:
        self._store.close()
