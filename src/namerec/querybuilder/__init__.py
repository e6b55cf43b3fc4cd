"""
querybuilder - fluent SQL statement builder

Builds SELECT/INSERT/UPDATE/DELETE statements from method chains, executes them
through a single memoized SQLAlchemy connection, paginates LIMIT-ed reads and
optionally caches results.
"""

from namerec.querybuilder.builder import QueryBuilder
from namerec.querybuilder.cache import CacheBackend
from namerec.querybuilder.cache import MemoryCacheBackend
from namerec.querybuilder.cache import make_cache_key
from namerec.querybuilder.connection import ConnectionProvider
from namerec.querybuilder.core.config import ConnectionConfig
from namerec.querybuilder.core.config import DatabaseSettings
from namerec.querybuilder.core.exceptions import QueryBuilderError
from namerec.querybuilder.core.exceptions import QueryExecutionError
from namerec.querybuilder.core.exceptions import QueryValidationError
from namerec.querybuilder.core.exceptions import TransactionError
from namerec.querybuilder.core.types import ComparisonOperator
from namerec.querybuilder.core.types import JoinType
from namerec.querybuilder.core.types import OrderDirection
from namerec.querybuilder.core.types import Verb
from namerec.querybuilder.executor import QueryExecutor
from namerec.querybuilder.factory import create_query_builder
from namerec.querybuilder.logging_config import configure_logging
from namerec.querybuilder.pagination import PaginationInfo
from namerec.querybuilder.pagination import paginate
from namerec.querybuilder.result import QueryResult
from namerec.querybuilder.statement import StatementSpec
from namerec.querybuilder.statement import count_statement
from namerec.querybuilder.statement import render

__version__ = '1.0'

__all__ = [
    # Builder
    'QueryBuilder',
    'StatementSpec',
    'render',
    'count_statement',
    'create_query_builder',
    # Operators
    'ComparisonOperator',
    'JoinType',
    'OrderDirection',
    'Verb',
    # Execution
    'QueryExecutor',
    'QueryResult',
    'PaginationInfo',
    'paginate',
    # Connection
    'ConnectionConfig',
    'ConnectionProvider',
    'DatabaseSettings',
    # Cache
    'CacheBackend',
    'MemoryCacheBackend',
    'make_cache_key',
    # Exceptions
    'QueryBuilderError',
    'QueryValidationError',
    'QueryExecutionError',
    'TransactionError',
    # Logging
    'configure_logging',
]
