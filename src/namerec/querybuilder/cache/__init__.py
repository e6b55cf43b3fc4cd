"""Query result caching package."""

from namerec.querybuilder.cache.keys import make_cache_key
from namerec.querybuilder.cache.memory import MemoryCacheBackend
from namerec.querybuilder.cache.protocol import CacheBackend

# Redis backend is not imported here to keep the redis client off the import path
# Use: from namerec.querybuilder.cache.redis import RedisCacheBackend

__all__ = [
    'CacheBackend',
    'make_cache_key',
    'MemoryCacheBackend',
]
