"""Cache key generation."""

import hashlib
import json
from collections.abc import Mapping
from typing import Any


def _tagged(value: Any) -> dict[str, str]:  # noqa: ANN401
    """JSON stand-in for a value json cannot encode, distinct from its str() form."""
    return {'__type__': f'{type(value).__module__}.{type(value).__qualname__}', 'value': str(value)}


def make_cache_key(sql: str, params: Mapping[str, Any] | None = None) -> str:
    """
    Create cache key for a rendered statement.

    The key depends only on the final SQL text and the bound parameter values,
    so two builders that reach the same clause and parameter state produce the
    same key regardless of the call order used to build them.

    Args:
        sql: Rendered SQL with placeholders
        params: Bound parameter values (including offset/limit)

    Returns:
        Cache key (compact hash)

    Example:
        >>> key1 = make_cache_key('SELECT * FROM users WHERE age > :param0', {'param0': 18})
        >>> key2 = make_cache_key('SELECT * FROM users WHERE age > :param0', {'param0': 18})
        >>> key1 == key2
        True
        >>> key3 = make_cache_key('SELECT * FROM users WHERE age > :param0', {'param0': 21})
        >>> key1 != key3  # Different values = different cache keys
        True
    """
    # Stable JSON representation; non-JSON values (dates, decimals) are tagged with their type
    params_str = json.dumps(dict(params or {}), sort_keys=True, ensure_ascii=False, default=_tagged)

    cache_input = f'{sql}|{params_str}'

    # Use BLAKE2b for fast, secure hashing (16 bytes = 32 hex chars)
    return hashlib.blake2b(cache_input.encode(), digest_size=16).hexdigest()
