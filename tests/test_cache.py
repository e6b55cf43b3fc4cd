"""Tests for query result caching."""

import fnmatch
from datetime import date
from decimal import Decimal

import pytest

from namerec.querybuilder import CacheBackend
from namerec.querybuilder import ComparisonOperator
from namerec.querybuilder import ConnectionProvider
from namerec.querybuilder import MemoryCacheBackend
from namerec.querybuilder import QueryBuilder
from namerec.querybuilder import QueryResult
from namerec.querybuilder import QueryValidationError
from namerec.querybuilder import make_cache_key
from namerec.querybuilder import paginate
from namerec.querybuilder.cache.redis import RedisCacheBackend


def users_over(builder: QueryBuilder, age: int) -> QueryBuilder:
    """SELECT id FROM users WHERE age > :param0."""
    return builder.select('users', ['id']).where('age', ComparisonOperator.GREATER_THAN, age)


class TestCacheKey:
    """Test cache key generation."""

    def test_same_statement_same_key(self):
        """Same SQL and params should produce same key."""
        key1 = make_cache_key('SELECT * FROM users WHERE id = :param0', {'param0': 1})
        key2 = make_cache_key('SELECT * FROM users WHERE id = :param0', {'param0': 1})
        assert key1 == key2

    def test_different_values_different_key(self):
        """Different parameter values should produce different keys."""
        key1 = make_cache_key('SELECT * FROM users WHERE id = :param0', {'param0': 1})
        key2 = make_cache_key('SELECT * FROM users WHERE id = :param0', {'param0': 2})
        assert key1 != key2

    def test_different_sql_different_key(self):
        """Different SQL should produce different keys."""
        key1 = make_cache_key('SELECT id FROM users')
        key2 = make_cache_key('SELECT name FROM users')
        assert key1 != key2

    def test_param_order_irrelevant(self):
        """Serialization is independent of parameter insertion order."""
        key1 = make_cache_key('INSERT INTO t (a, b) VALUES (:a, :b)', {'a': 1, 'b': 2})
        key2 = make_cache_key('INSERT INTO t (a, b) VALUES (:a, :b)', {'b': 2, 'a': 1})
        assert key1 == key2

    def test_key_is_compact(self):
        """Cache key should be compact (32 hex chars)."""
        key = make_cache_key('SELECT 1')
        assert len(key) == 32  # 16 bytes = 32 hex chars
        assert all(c in '0123456789abcdef' for c in key)

    def test_builders_reaching_same_state(self, builder: QueryBuilder, provider: ConnectionProvider):
        """Different call orders that end in the same state share a key."""
        other = QueryBuilder(provider)
        builder.select('users').order_by('name').where('age', ComparisonOperator.GREATER_THAN, 18).limit(10)
        other.select('users').limit(10).where('age', ComparisonOperator.GREATER_THAN, 18).order_by('name')

        key1 = make_cache_key(builder.get_sql(), builder.spec.bound_parameters())
        key2 = make_cache_key(other.get_sql(), other.spec.bound_parameters())
        assert key1 == key2

    def test_limit_values_affect_key(self, builder: QueryBuilder):
        """Pages of the same statement are cached separately."""
        builder.select('users').limit(10, 0)
        key1 = make_cache_key(builder.get_sql(), builder.spec.bound_parameters())
        builder.limit(10, 10)
        key2 = make_cache_key(builder.get_sql(), builder.spec.bound_parameters())
        assert key1 != key2

    def test_typed_values_distinct_from_strings(self):
        """Values json cannot encode do not collide with their string form."""
        sql = 'SELECT * FROM orders WHERE amount = :param0'
        assert make_cache_key(sql, {'param0': Decimal('1')}) != make_cache_key(sql, {'param0': '1'})
        assert make_cache_key(sql, {'param0': date(2024, 1, 2)}) != make_cache_key(sql, {'param0': '2024-01-02'})
        assert make_cache_key(sql, {'param0': Decimal('1')}) == make_cache_key(sql, {'param0': Decimal('1')})


class TestMemoryCacheBackend:
    """Test memory cache backend."""

    def test_protocol(self):
        """Memory backend satisfies the protocol."""
        assert isinstance(MemoryCacheBackend(), CacheBackend)

    def test_cache_miss(self):
        """First access should be cache miss."""
        cache = MemoryCacheBackend(max_size=10)
        assert cache.get('test_key') is None
        assert not cache.has('test_key')

    def test_cache_hit(self):
        """Second access should be cache hit."""
        cache = MemoryCacheBackend(max_size=10)
        cache.set('test_key', QueryResult(rows=[{'id': 1}], row_count=1))
        assert cache.has('test_key')
        result = cache.get('test_key')
        assert result is not None
        assert result.rows == [{'id': 1}]

    def test_lru_eviction(self):
        """Oldest entry should be evicted when cache full."""
        cache = MemoryCacheBackend(max_size=2)
        cache.set('key1', QueryResult(row_count=1))
        cache.set('key2', QueryResult(row_count=2))
        cache.set('key3', QueryResult(row_count=3))  # Should evict key1

        assert cache.get('key1') is None  # Evicted
        assert cache.get('key2') is not None
        assert cache.get('key3') is not None

    def test_ttl_expiry(self):
        """Entries expire after their TTL."""
        now = [1000.0]
        cache = MemoryCacheBackend(max_size=10, clock=lambda: now[0])
        cache.set('key1', QueryResult(row_count=1), ttl=60)

        now[0] += 59
        assert cache.has('key1')

        now[0] += 1
        assert not cache.has('key1')
        assert cache.get('key1') is None
        assert cache.stats()['size'] == 0

    def test_no_ttl_never_expires(self):
        """Entries without TTL stay until evicted."""
        now = [0.0]
        cache = MemoryCacheBackend(clock=lambda: now[0])
        cache.set('key1', QueryResult())
        now[0] += 10**9
        assert cache.has('key1')

    def test_stats(self):
        """Stats should track hits/misses."""
        cache = MemoryCacheBackend(max_size=10)
        cache.set('key1', QueryResult())
        cache.get('key1')  # Hit
        cache.get('key2')  # Miss

        stats = cache.stats()
        assert stats['backend'] == 'memory'
        assert stats['size'] == 1
        assert stats['hits'] == 1
        assert stats['misses'] == 1
        assert stats['hit_rate'] == 0.5

    def test_clear(self):
        """Clear should remove all entries."""
        cache = MemoryCacheBackend(max_size=10)
        cache.set('key1', QueryResult())
        cache.set('key2', QueryResult())
        cache.clear()

        assert cache.get('key1') is None
        assert cache.get('key2') is None
        assert cache.stats()['size'] == 0

    def test_entries_detached_from_callers(self):
        """Changing a stored or returned result does not change the cached entry."""
        cache = MemoryCacheBackend(max_size=10)
        stored = QueryResult(rows=[{'id': 1}], row_count=1)
        cache.set('key1', stored)

        stored.rows.append({'id': 2})
        fetched = cache.get('key1')
        fetched.rows[0]['id'] = 99
        fetched.rows.clear()

        assert cache.get('key1') == QueryResult(rows=[{'id': 1}], row_count=1)

    def test_invalid_size(self):
        """max_size must be positive."""
        with pytest.raises(ValueError):
            MemoryCacheBackend(max_size=0)


class TestQueryResultSerialization:
    """Test QueryResult round trip through dictionaries."""

    def test_with_pagination(self):
        """Pagination survives serialization."""
        result = QueryResult(rows=[{'id': 1}], row_count=1, pagination=paginate(95, 10, 3))
        assert QueryResult.from_dict(result.to_dict()) == result

    def test_without_pagination(self):
        """Pagination key is omitted when absent."""
        data = QueryResult(rows=[], row_count=3).to_dict()
        assert 'pagination' not in data
        assert QueryResult.from_dict(data).pagination is None


class TestBuilderCaching:
    """Test caching through QueryBuilder.execute()."""

    def test_cache_hit_skips_connection(
        self,
        cached_builder: QueryBuilder,
        seeded_provider: ConnectionProvider,
        monkeypatch: pytest.MonkeyPatch,
    ):
        """A cache hit returns the stored result without connecting."""
        first = users_over(cached_builder.cache(60), 30).execute()

        def fail_connect():
            raise AssertionError('connect() must not be called on cache hit')

        monkeypatch.setattr(seeded_provider, 'connect', fail_connect)

        second = users_over(cached_builder, 30).execute()
        assert second == first
        assert cached_builder.spec.is_empty

    def test_cached_result_not_shared_with_caller(self, cached_builder: QueryBuilder):
        """Emptying a returned result leaves the next cache hit intact."""
        first = users_over(cached_builder.cache(60), 33).execute()
        first.rows.clear()

        second = users_over(cached_builder, 33).execute()
        assert second.rows == [{'id': 24}, {'id': 25}]

    def test_write_statements_always_run(self, cached_builder: QueryBuilder, cache_backend: MemoryCacheBackend):
        """DELETE is executed every time even while caching is armed."""
        cached_builder.cache(60)

        deleted = cached_builder.delete('orders').where('user_id', ComparisonOperator.EQUALS, 1).execute()
        assert deleted.row_count == 2

        cached_builder.insert('orders', {'id': 7, 'user_id': 1, 'amount': 5}).execute()

        deleted = cached_builder.delete('orders').where('user_id', ComparisonOperator.EQUALS, 1).execute()
        assert deleted.row_count == 1
        assert cache_backend.stats()['size'] == 0

        remaining = cached_builder.select('orders', 'COUNT(*) AS n').where(
            'user_id', ComparisonOperator.EQUALS, 1
        ).execute()
        assert remaining.first() == {'n': 0}

    def test_raw_write_not_cached(self, cached_builder: QueryBuilder, cache_backend: MemoryCacheBackend):
        """A raw statement returning no rows is not stored."""
        cached_builder.cache(60)

        first = cached_builder.raw('DELETE FROM orders WHERE user_id = :uid', {'uid': 4}).execute()
        cached_builder.insert('orders', {'id': 7, 'user_id': 4, 'amount': 5}).execute()
        second = cached_builder.raw('DELETE FROM orders WHERE user_id = :uid', {'uid': 4}).execute()

        assert first.row_count == 2
        assert second.row_count == 1
        assert cache_backend.stats()['size'] == 0

    def test_cache_stores_with_ttl(self, cached_builder: QueryBuilder, cache_backend: MemoryCacheBackend):
        """Results are written once per distinct statement."""
        users_over(cached_builder.cache(60), 30).execute()  # Miss
        users_over(cached_builder, 30).execute()  # Hit
        users_over(cached_builder, 31).execute()  # Miss (different value)

        stats = cache_backend.stats()
        assert stats['size'] == 2
        assert stats['hits'] == 1
        assert stats['misses'] == 2

    def test_arming_persists_across_execute(self, cached_builder: QueryBuilder):
        """cache(ttl) stays armed after execute() resets the statement."""
        users_over(cached_builder.cache(60), 30).execute()
        assert cached_builder.cache_ttl == 60

    def test_no_cache_disarms(self, cached_builder: QueryBuilder, cache_backend: MemoryCacheBackend):
        """no_cache() stops reads and writes."""
        cached_builder.cache(60).no_cache()
        users_over(cached_builder, 30).execute()
        assert cache_backend.stats()['size'] == 0

    def test_not_armed_by_default(self, cached_builder: QueryBuilder, cache_backend: MemoryCacheBackend):
        """A backend alone does not enable caching."""
        users_over(cached_builder, 30).execute()
        assert cache_backend.stats()['size'] == 0

    def test_cache_requires_backend(self, builder: QueryBuilder):
        """cache() without a backend is rejected."""
        with pytest.raises(QueryValidationError):
            builder.cache(60)

    def test_cache_requires_positive_ttl(self, cached_builder: QueryBuilder):
        """TTL must be positive."""
        with pytest.raises(QueryValidationError):
            cached_builder.cache(0)

    def test_cache_write_failure_does_not_fail_query(self, seeded_provider: ConnectionProvider):
        """A failing backend write is logged, the result still returned."""

        class BrokenBackend(MemoryCacheBackend):
            def set(self, key, value, ttl=None):
                raise ConnectionError('cache down')

        builder = QueryBuilder(seeded_provider, cache_backend=BrokenBackend())
        result = users_over(builder.cache(60), 34).execute()
        assert result.rows == [{'id': 25}]


class FakeRedis:
    """Minimal in-memory stand-in for the redis client API used by the backend."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    def exists(self, key):
        return int(key in self.data)

    def get(self, key):
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl

    def incr(self, key):
        self.data[key] = str(int(self.data.get(key, 0)) + 1)

    def scan(self, cursor, match='*', count=100):
        return 0, [key for key in self.data if fnmatch.fnmatch(key, match)]

    def delete(self, *keys):
        for key in keys:
            self.data.pop(key, None)


class TestRedisCacheBackend:
    """Test Redis cache backend against a fake client."""

    def test_set_and_get(self):
        """Results round trip through JSON with TTL."""
        client = FakeRedis()
        backend = RedisCacheBackend(client=client, prefix='qb:')
        result = QueryResult(rows=[{'id': 1, 'name': 'user01'}], row_count=1, pagination=paginate(1, 10, 1))

        backend.set('abc', result, ttl=30)

        assert client.ttls['qb:abc'] == 30
        assert backend.has('abc')
        assert backend.get('abc') == result

    def test_default_ttl(self):
        """Backend default TTL applies when none is given."""
        client = FakeRedis()
        backend = RedisCacheBackend(client=client, prefix='qb:', default_ttl=120)
        backend.set('abc', QueryResult())
        assert client.ttls['qb:abc'] == 120

    def test_miss_and_stats(self):
        """Misses and hits are counted."""
        backend = RedisCacheBackend(client=FakeRedis(), prefix='qb:')
        backend.set('abc', QueryResult())
        assert backend.get('missing') is None
        backend.get('abc')

        stats = backend.stats()
        assert stats['backend'] == 'redis'
        assert stats['size'] == 1
        assert stats['hits'] == 1
        assert stats['misses'] == 1

    def test_clear(self):
        """Clear removes prefixed keys only."""
        client = FakeRedis()
        client.data['other:key'] = 'x'
        backend = RedisCacheBackend(client=client, prefix='qb:')
        backend.set('abc', QueryResult())
        backend.clear()

        assert not backend.has('abc')
        assert 'other:key' in client.data
