"""Statement executor - runs built statements with pagination and caching."""

import logging
from typing import Any

import sqlparse
from sqlalchemy import Connection
from sqlalchemy import Integer
from sqlalchemy import TextClause
from sqlalchemy import bindparam
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from namerec.querybuilder.cache.keys import make_cache_key
from namerec.querybuilder.cache.protocol import CacheBackend
from namerec.querybuilder.connection import ConnectionProvider
from namerec.querybuilder.core.exceptions import QueryExecutionError
from namerec.querybuilder.core.exceptions import QueryValidationError
from namerec.querybuilder.core.exceptions import error_code
from namerec.querybuilder.core.types import Verb
from namerec.querybuilder.logging_config import get_logger
from namerec.querybuilder.pagination import PaginationInfo
from namerec.querybuilder.pagination import page_for_offset
from namerec.querybuilder.pagination import paginate
from namerec.querybuilder.result import QueryResult
from namerec.querybuilder.result import ResultBuilder
from namerec.querybuilder.statement import COUNT_FIELD
from namerec.querybuilder.statement import LIMIT_PARAM
from namerec.querybuilder.statement import OFFSET_PARAM
from namerec.querybuilder.statement import StatementSpec
from namerec.querybuilder.statement import count_statement

logger = logging.getLogger(__name__)
struct_logger = get_logger(__name__)

# Only statements that read rows may be answered from the cache
CACHEABLE_VERBS = (Verb.SELECT, Verb.RAW)


def is_empty_value(value: Any) -> bool:  # noqa: ANN401
    """Empty values: None, False, 0, 0.0, '', '0' and empty collections."""
    if isinstance(value, str):
        return value in ('', '0')
    try:
        return not value
    except (TypeError, ValueError):
        # Objects without a defined truth value (e.g. arrays) are never empty
        return False


class QueryExecutor:
    """Statement executor - stateless namespace holder."""

    @classmethod
    def execute(
        cls,
        spec: StatementSpec,
        provider: ConnectionProvider,
        cache_backend: CacheBackend | None = None,
        cache_ttl: int | None = None,
        reject_empty_values: bool = True,
    ) -> QueryResult:
        """
        Execute statement and return result.

        Args:
            spec: Statement specification to execute
            provider: Connection provider (connected lazily, only on cache miss)
            cache_backend: Optional cache backend (None = no caching)
            cache_ttl: Cache TTL in seconds (None = caching not armed)
            reject_empty_values: Reject empty/zero bound values before execution

        Returns:
            QueryResult with rows, row count and pagination for LIMIT-ed reads

        Raises:
            QueryValidationError: If the statement is empty or a bound value is empty
            QueryExecutionError: If the driver fails on the statement or its count query
        """
        if spec.is_empty:
            msg = 'No statement to execute: call select(), insert(), update(), delete() or raw() first'
            raise QueryValidationError(msg)

        if reject_empty_values:
            cls._check_empty_values(spec)

        sql = spec.sql
        params = spec.bound_parameters()

        # Try cache
        cache_key = None
        if cache_backend is not None and cache_ttl is not None and spec.verb in CACHEABLE_VERBS:
            cache_key = make_cache_key(sql, params)
            if cache_backend.has(cache_key):
                cached = cache_backend.get(cache_key)
                if cached is not None:
                    logger.debug(f'Cache hit for {cache_key}')
                    return cached
            logger.debug(f'Cache miss for {cache_key}')

        result, returns_rows = cls._execute_statement(spec, provider)

        # Cache result (a RAW write statement returns no rows and is never stored)
        if cache_backend is not None and cache_key is not None and returns_rows:
            try:
                cache_backend.set(cache_key, result, cache_ttl)
            except Exception as e:
                # A cache write failure must not fail the query
                struct_logger.warning(
                    'Failed to cache query',
                    cache_key=cache_key,
                    error=str(e),
                    error_type=type(e).__name__,
                )

        return result

    @staticmethod
    def _check_empty_values(spec: StatementSpec) -> None:
        """
        Reject empty bound values.

        Raises:
            QueryValidationError: Naming the first placeholder bound to an empty value
        """
        for name, value in spec.params.items():
            if is_empty_value(value):
                msg = f'Empty value bound to placeholder :{name}'
                raise QueryValidationError(msg, field_name=name, sql=spec.sql)

    @classmethod
    def _execute_statement(cls, spec: StatementSpec, provider: ConnectionProvider) -> tuple[QueryResult, bool]:
        """
        Run the statement (and its count query when paginated) on the provider's connection.

        Returns the result and whether the statement returned rows.

        Outside an explicit transaction each execution is committed; on failure the
        connection is rolled back so it stays usable.
        """
        sql = spec.sql
        try:
            connection = provider.connect()
            logger.debug(f'Executing: {sql}')
            cursor = connection.execute(cls.build_clause(spec))
            returns_rows = cursor.returns_rows

            if spec.limit is not None and spec.verb in (Verb.SELECT, Verb.RAW):
                rows = ResultBuilder.extract_rows(cursor)
                limit, offset = spec.limit
                pagination = cls._paginate(count_statement(spec), connection, limit, offset)
                result = QueryResult(rows=rows, row_count=len(rows), pagination=pagination)
            else:
                result = ResultBuilder.build_result(cursor)

            if not provider.in_transaction:
                connection.commit()
            return result, returns_rows
        except SQLAlchemyError as e:
            if provider.is_connected and not provider.in_transaction:
                provider.connect().rollback()
            msg = f'Query execution failed: {e}'
            raise QueryExecutionError(
                msg,
                sql=sql,
                params=spec.bound_parameters(),
                code=error_code(e),
                original_error=e,
            ) from e

    @classmethod
    def _paginate(
        cls,
        count_spec: StatementSpec,
        connection: Connection,
        limit: int,
        offset: int,
    ) -> PaginationInfo:
        """Run the count query and compute pagination for a LIMIT-ed statement."""
        logger.debug(f'Counting: {count_spec.sql}')
        row = connection.execute(cls.build_clause(count_spec)).mappings().first()
        total = int(row[COUNT_FIELD]) if row is not None else 0

        return paginate(total, limit, page_for_offset(offset, limit))

    @staticmethod
    def build_clause(spec: StatementSpec) -> TextClause:
        """
        Build executable text clause with all parameters bound by name.

        List and tuple values are bound as expanding parameters (for IN),
        offset and limit are bound as integers.

        Args:
            spec: Statement specification

        Returns:
            SQLAlchemy TextClause ready for Connection.execute()
        """
        binds = [
            bindparam(name, value, expanding=isinstance(value, (list, tuple)))
            for name, value in spec.params.items()
        ]
        if spec.limit is not None:
            limit, offset = spec.limit
            binds.append(bindparam(OFFSET_PARAM, offset, type_=Integer))
            binds.append(bindparam(LIMIT_PARAM, limit, type_=Integer))

        clause = text(spec.sql)
        return clause.bindparams(*binds) if binds else clause

    @staticmethod
    def format_sql(sql: str) -> str:
        """
        Format SQL for debug output.

        Args:
            sql: SQL text

        Returns:
            Reindented SQL with upper-case keywords
        """
        return sqlparse.format(sql, reindent=True, keyword_case='upper')
