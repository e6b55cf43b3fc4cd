"""Cache backend protocol definition."""

from typing import Any
from typing import Protocol
from typing import runtime_checkable

from namerec.querybuilder.result import QueryResult


@runtime_checkable
class CacheBackend(Protocol):
    """
    Protocol for cache backends.

    Allows structural subtyping - any class implementing these methods
    can be used as a cache backend without explicit inheritance.
    Expiry is the backend's concern; callers only pass a TTL.
    """

    def has(self, key: str) -> bool:
        """
        Check whether a live entry exists for key.

        Args:
            key: Cache key

        Returns:
            True if get() would return a result
        """
        ...

    def get(self, key: str) -> QueryResult | None:
        """
        Get cached result by key.

        Args:
            key: Cache key

        Returns:
            Cached result or None if not found
        """
        ...

    def set(self, key: str, value: QueryResult, ttl: int | None = None) -> None:
        """
        Store result.

        Args:
            key: Cache key
            value: Result to cache
            ttl: Optional TTL in seconds (None = use backend default)
        """
        ...

    def clear(self) -> None:
        """Clear all cached results."""
        ...

    def stats(self) -> dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Statistics dictionary with at least:
            - backend: backend type name
            - size: current number of cached items
            - hits: cache hit count
            - misses: cache miss count
            - hit_rate: hit rate (0.0-1.0)
        """
        ...
