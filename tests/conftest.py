"""Pytest configuration and fixtures."""

import pytest
from sqlalchemy import Column
from sqlalchemy import Connection
from sqlalchemy import ForeignKey
from sqlalchemy import Integer
from sqlalchemy import MetaData
from sqlalchemy import String
from sqlalchemy import Table

from namerec.querybuilder import ConnectionConfig
from namerec.querybuilder import ConnectionProvider
from namerec.querybuilder import MemoryCacheBackend
from namerec.querybuilder import QueryBuilder

metadata = MetaData()

users_table = Table(
    'users',
    metadata,
    Column('id', Integer, primary_key=True),
    Column('name', String(50), nullable=False),
    Column('age', Integer, nullable=False),
)

orders_table = Table(
    'orders',
    metadata,
    Column('id', Integer, primary_key=True),
    Column('user_id', Integer, ForeignKey('users.id'), nullable=False),
    Column('amount', Integer, nullable=False),
)

# 25 users aged 11..35
USERS = [{'id': i, 'name': f'user{i:02d}', 'age': 10 + i} for i in range(1, 26)]

# Totals per user: 1 -> 130, 2 -> 30, 3 -> 200, 4 -> 130
ORDERS = [
    {'id': 1, 'user_id': 1, 'amount': 50},
    {'id': 2, 'user_id': 1, 'amount': 80},
    {'id': 3, 'user_id': 2, 'amount': 30},
    {'id': 4, 'user_id': 3, 'amount': 200},
    {'id': 5, 'user_id': 4, 'amount': 60},
    {'id': 6, 'user_id': 4, 'amount': 70},
]


def seed(connection: Connection) -> None:
    """Create schema and test data."""
    metadata.create_all(connection)
    connection.execute(users_table.insert(), USERS)
    connection.execute(orders_table.insert(), ORDERS)


@pytest.fixture
def connection_config() -> ConnectionConfig:
    """In-memory SQLite configuration."""
    return ConnectionConfig(driver='sqlite', database=':memory:')


@pytest.fixture
def provider(connection_config: ConnectionConfig):  # noqa: ANN201
    """Connection provider (not connected yet)."""
    provider = ConnectionProvider(connection_config)

    yield provider

    provider.disconnect()


@pytest.fixture
def seeded_provider(provider: ConnectionProvider) -> ConnectionProvider:
    """Connection provider with users and orders tables populated."""
    provider.transaction(seed)
    return provider


@pytest.fixture
def builder(provider: ConnectionProvider) -> QueryBuilder:
    """Builder over an unconnected provider (rendering tests)."""
    return QueryBuilder(provider)


@pytest.fixture
def db_builder(seeded_provider: ConnectionProvider) -> QueryBuilder:
    """Builder over the seeded database."""
    return QueryBuilder(seeded_provider)


@pytest.fixture
def cache_backend() -> MemoryCacheBackend:
    """Memory cache backend."""
    return MemoryCacheBackend(max_size=10)


@pytest.fixture
def cached_builder(seeded_provider: ConnectionProvider, cache_backend: MemoryCacheBackend) -> QueryBuilder:
    """Builder over the seeded database with a memory cache."""
    return QueryBuilder(seeded_provider, cache_backend=cache_backend)
