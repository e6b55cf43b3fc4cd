"""In-memory LRU cache backend."""

import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from typing import Any

from namerec.querybuilder.result import QueryResult


def _detached(value: QueryResult) -> QueryResult:
    """Copy of a result that shares no row objects with the original."""
    return QueryResult.from_dict(value.to_dict())


@dataclass
class MemoryCacheBackend:
    """
    In-memory LRU cache backend with per-entry TTL (single process).

    Suitable for:
    - Development and testing
    - Single-process deployments
    - When Redis is not available

    Not suitable for:
    - Multi-process deployments (uvicorn workers)
    - Distributed systems (k8s pods)

    Thread-safe: Yes (uses RLock for concurrent access)
    """

    max_size: int = 128
    default_ttl: int | None = None
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    _cache: OrderedDict[str, tuple[QueryResult, float | None]] = field(default_factory=OrderedDict, init=False)
    _hits: int = field(default=0, init=False)
    _misses: int = field(default=0, init=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False)

    def __post_init__(self) -> None:
        """Validate initialization parameters."""
        if self.max_size <= 0:
            msg = 'max_size must be positive integer'
            raise ValueError(msg)

    def has(self, key: str) -> bool:
        """Check for a live entry (a miss is counted, a hit is counted by get())."""
        with self._lock:
            if self._lookup(key) is not None:
                return True
            self._misses += 1
            return False

    def get(self, key: str) -> QueryResult | None:
        """Get result from cache with LRU update (O(1))."""
        with self._lock:
            value = self._lookup(key)
            if value is not None:
                # Move to end (most recently used) - O(1) with OrderedDict
                self._cache.move_to_end(key)
                self._hits += 1
                return _detached(value)

            self._misses += 1
            return None

    def set(self, key: str, value: QueryResult, ttl: int | None = None) -> None:
        """Store result in cache with LRU eviction (O(1))."""
        ttl = ttl or self.default_ttl
        expires_at = self.clock() + ttl if ttl else None

        with self._lock:
            # Evict oldest if cache full and key is new
            if key not in self._cache and len(self._cache) >= self.max_size:
                self._cache.popitem(last=False)  # Remove first (least recently used) - O(1)

            self._cache[key] = (_detached(value), expires_at)
            self._cache.move_to_end(key)

    def clear(self) -> None:
        """Clear all cache."""
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            total = self._hits + self._misses
            return {
                'backend': 'memory',
                'size': len(self._cache),
                'max_size': self.max_size,
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': self._hits / total if total > 0 else 0.0,
            }

    def _lookup(self, key: str) -> QueryResult | None:
        """Return live value for key, dropping it if expired. Caller holds the lock."""
        entry = self._cache.get(key)
        if entry is None:
            return None

        value, expires_at = entry
        if expires_at is not None and self.clock() >= expires_at:
            del self._cache[key]
            return None
        return value
