from __future__ import annotations
import json
import logging
import time
from typing import Any, Hashable, NamedTuple, Optional, Protocol, Sequence

from cachetools import TLRUCache

log = logging.getLogger("gridquery.cache")

DEFAULT_TTL_SECONDS = 100.0
DEFAULT_MAX_ENTRIES = 1024


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class CacheStore(Protocol):
    """Key -> value store with per-entry expiry."""

    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None: ...

    def flush_all(self) -> None: ...


class _Entry(NamedTuple):
    value: Any
    ttl: float


class TTLCacheStore:
    """
    CacheStore on top of cachetools.TLRUCache. Each entry carries its own TTL
    (default `ttl`); size is bounded by `maxsize`.
    get() returns MISSING for absent or expired keys.
    """

    def __init__(self, ttl: float = DEFAULT_TTL_SECONDS, maxsize: int = DEFAULT_MAX_ENTRIES, timer=time.monotonic):
        self.ttl = float(ttl)
        self._cache: TLRUCache = TLRUCache(maxsize=maxsize, ttu=self._ttu, timer=timer)

    @staticmethod
    def _ttu(_key: Hashable, entry: _Entry, now: float) -> float:
        return now + entry.ttl

    def get(self, key: str) -> Any:
        entry = self._cache.get(key)
        return MISSING if entry is None else entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        self._cache[key] = _Entry(value, self.ttl if ttl is None else float(ttl))

    def flush_all(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        self._cache.expire()
        return len(self._cache)


class QueryCache:
    """
    Result cache policy used by Database. Keys are built from the SQL text and
    the JSON form of the parameter list, so parameter order matters.
    """
    enabled = True

    def __init__(self, store: CacheStore):
        self.store = store

    @staticmethod
    def query_key(sql: str, params: Optional[Sequence[Any]]) -> str:
        payload = json.dumps(None if params is None else list(params), default=str, separators=(",", ":"))
        return f"query_{sql}_{payload}"

    @staticmethod
    def schema_key(table: str) -> str:
        return f"schema_{table}"

    def get(self, key: str) -> Any:
        value = self.store.get(key)
        log.debug("cache %s: %s", "miss" if value is MISSING else "hit", key)
        return value

    def put(self, key: str, value: Any) -> None:
        self.store.set(key, value)

    def clear(self) -> None:
        self.store.flush_all()


class NullCache(QueryCache):
    """The no-op policy: every lookup misses and nothing is stored."""
    enabled = False

    def __init__(self) -> None:
        self.store = None

    def get(self, key: str) -> Any:
        return MISSING

    def put(self, key: str, value: Any) -> None:
        return None

    def clear(self) -> None:
        return None


def ttl_cache(ttl: float = DEFAULT_TTL_SECONDS, maxsize: int = DEFAULT_MAX_ENTRIES) -> QueryCache:
    return QueryCache(TTLCacheStore(ttl=ttl, maxsize=maxsize))


__all__ = [
    "MISSING",
    "CacheStore",
    "TTLCacheStore",
    "QueryCache",
    "NullCache",
    "ttl_cache",
    "DEFAULT_TTL_SECONDS",
    "DEFAULT_MAX_ENTRIES",
]
