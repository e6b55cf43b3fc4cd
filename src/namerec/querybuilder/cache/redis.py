"""Redis cache backend for distributed deployments."""

import json
from typing import Any

import redis

from namerec.querybuilder.result import QueryResult


class RedisCacheBackend:
    """
    Redis cache backend (multi-process, multi-container).

    Suitable for:
    - Production deployments
    - Multi-process servers (uvicorn workers)
    - Distributed systems (k8s pods)
    - When query results need to be shared across instances

    Results are stored as JSON; values JSON cannot represent
    (dates, decimals) come back as strings.
    """

    def __init__(
        self,
        redis_url: str = 'redis://localhost:6379/0',
        prefix: str = 'querybuilder:',
        default_ttl: int = 3600,
        client: Any = None,  # noqa: ANN401
    ) -> None:
        """
        Initialize Redis cache.

        Args:
            redis_url: Redis connection URL
            prefix: Key prefix for namespacing
            default_ttl: Default TTL in seconds (1 hour)
            client: Pre-built Redis client (overrides redis_url)
        """
        self._redis = client if client is not None else redis.from_url(redis_url, decode_responses=True)
        self._prefix = prefix
        self._default_ttl = default_ttl

        # Stats keys (separate from cached results)
        self._hits_key = f'{prefix}stats:hits'
        self._misses_key = f'{prefix}stats:misses'

    def has(self, key: str) -> bool:
        """Check key existence in Redis."""
        if self._redis.exists(f'{self._prefix}{key}'):
            return True
        self._redis.incr(self._misses_key)
        return False

    def get(self, key: str) -> QueryResult | None:
        """Get result from Redis."""
        full_key = f'{self._prefix}{key}'
        data = self._redis.get(full_key)

        if data:
            self._redis.incr(self._hits_key)
            return QueryResult.from_dict(json.loads(data))

        self._redis.incr(self._misses_key)
        return None

    def set(self, key: str, value: QueryResult, ttl: int | None = None) -> None:
        """Store result in Redis with TTL."""
        full_key = f'{self._prefix}{key}'
        ttl = ttl or self._default_ttl

        self._redis.setex(
            full_key,
            ttl,
            json.dumps(value.to_dict(), default=str),
        )

    def clear(self) -> None:
        """Clear all cache keys under prefix."""
        pattern = f'{self._prefix}*'
        # Use cursor-based scan for safe deletion
        cursor = 0
        while True:
            cursor, keys = self._redis.scan(cursor, match=pattern, count=100)
            if keys:
                self._redis.delete(*keys)
            if cursor == 0:
                break

    def stats(self) -> dict[str, Any]:
        """Get cache statistics from Redis."""
        hits = int(self._redis.get(self._hits_key) or 0)
        misses = int(self._redis.get(self._misses_key) or 0)
        total = hits + misses

        # Count cached results (expensive for large caches)
        pattern = f'{self._prefix}*'
        size = 0
        cursor = 0
        while True:
            cursor, keys = self._redis.scan(cursor, match=pattern, count=100)
            size += len([k for k in keys if not k.endswith(':stats:hits') and not k.endswith(':stats:misses')])
            if cursor == 0:
                break

        return {
            'backend': 'redis',
            'size': size,
            'hits': hits,
            'misses': misses,
            'hit_rate': hits / total if total > 0 else 0.0,
        }
