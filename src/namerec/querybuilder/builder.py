"""Fluent statement builder."""

import logging
from collections.abc import Callable
from collections.abc import Mapping
from collections.abc import Sequence
from typing import Any
from typing import TypeVar

from sqlalchemy import Connection

from namerec.querybuilder.cache.protocol import CacheBackend
from namerec.querybuilder.connection import ConnectionProvider
from namerec.querybuilder.core.exceptions import QueryValidationError
from namerec.querybuilder.core.types import ComparisonOperator
from namerec.querybuilder.core.types import JoinType
from namerec.querybuilder.core.types import OrderDirection
from namerec.querybuilder.core.types import Verb
from namerec.querybuilder.executor import QueryExecutor
from namerec.querybuilder.result import QueryResult
from namerec.querybuilder.statement import PLACEHOLDER_PREFIX
from namerec.querybuilder.statement import StatementSpec
from namerec.querybuilder.statement import select_prefix

logger = logging.getLogger(__name__)

T = TypeVar('T')


class QueryBuilder:
    """
    Fluent builder for SELECT/INSERT/UPDATE/DELETE/raw statements.

    The builder holds one immutable StatementSpec and swaps it for a new value
    on every call. Verb calls (select, insert, update, delete, raw) start a
    fresh statement; clause calls extend the current one. execute() runs the
    statement and clears it, so the builder can be reused for the next one.

    Cache arming via cache(ttl) is a builder setting, not statement state: it
    stays in effect for every following execute() until no_cache() is called.

    Example:
        builder = QueryBuilder(provider, cache_backend=MemoryCacheBackend())

        result = (
            builder.select('users', ['id', 'name'])
            .where('age', ComparisonOperator.GREATER_THAN, 18)
            .order_by('name')
            .limit(10, 20)
            .execute()
        )
        result.pagination  # PaginationInfo(current_page=3, per_page=10, ...)
    """

    def __init__(
        self,
        provider: ConnectionProvider,
        cache_backend: CacheBackend | None = None,
        reject_empty_values: bool = True,
    ) -> None:
        """
        Initialize builder.

        Args:
            provider: Connection provider used by execute()
            cache_backend: Optional cache backend used once cache() is armed
            reject_empty_values: Reject None/0/''/empty bound values on execute()
        """
        self._provider = provider
        self._cache_backend = cache_backend
        self._reject_empty_values = reject_empty_values
        self._cache_ttl: int | None = None
        self._spec = StatementSpec()

    # ========== State ==========

    @property
    def spec(self) -> StatementSpec:
        """Current statement specification."""
        return self._spec

    @property
    def params(self) -> dict[str, Any]:
        """Copy of bound placeholder values (names without the colon)."""
        return dict(self._spec.params)

    @property
    def provider(self) -> ConnectionProvider:
        """Connection provider."""
        return self._provider

    @property
    def cache_ttl(self) -> int | None:
        """Armed cache TTL in seconds, None when caching is off."""
        return self._cache_ttl

    def reset(self) -> 'QueryBuilder':
        """Discard the current statement. Cache arming is kept."""
        self._spec = StatementSpec()
        return self

    # ========== Verbs ==========

    def select(self, table: str, fields: Sequence[str] | str = ('*',)) -> 'QueryBuilder':
        """
        Start a SELECT statement.

        Args:
            table: Table name
            fields: Selected field expressions (default: all)
        """
        field_list = (fields,) if isinstance(fields, str) else tuple(fields)
        self._spec = StatementSpec(
            verb=Verb.SELECT,
            table=table,
            fields=field_list,
            prefix=select_prefix(table, field_list),
        )
        return self

    def insert(self, table: str, data: Mapping[str, Any]) -> 'QueryBuilder':
        """
        Start an INSERT statement with one placeholder per field.

        Args:
            table: Table name
            data: Column -> value mapping

        Raises:
            QueryValidationError: If data is empty
        """
        columns = self._data_columns('insert', data)
        placeholders = ', '.join(f':{column}' for column in columns)
        self._spec = StatementSpec(
            verb=Verb.INSERT,
            table=table,
            prefix=f'INSERT INTO {table} ({", ".join(columns)}) VALUES ({placeholders})',
            params=dict(data),
            param_index=len(data),
        )
        return self

    def update(self, table: str, data: Mapping[str, Any]) -> 'QueryBuilder':
        """
        Start an UPDATE statement with one placeholder per field.

        Args:
            table: Table name
            data: Column -> new value mapping

        Raises:
            QueryValidationError: If data is empty
        """
        columns = self._data_columns('update', data)
        assignments = ', '.join(f'{column} = :{column}' for column in columns)
        self._spec = StatementSpec(
            verb=Verb.UPDATE,
            table=table,
            prefix=f'UPDATE {table} SET {assignments}',
            params=dict(data),
            param_index=len(data),
        )
        return self

    def delete(self, table: str) -> 'QueryBuilder':
        """Start a DELETE statement."""
        self._spec = StatementSpec(
            verb=Verb.DELETE,
            table=table,
            prefix=f'DELETE FROM {table}',
        )
        return self

    def raw(self, sql: str, params: Mapping[str, Any] | None = None) -> 'QueryBuilder':
        """
        Start a statement from literal SQL.

        Args:
            sql: SQL text using :name placeholders
            params: Placeholder values; names may carry the leading colon
        """
        normalized = {name.lstrip(':'): value for name, value in (params or {}).items()}
        self._spec = StatementSpec(
            verb=Verb.RAW,
            prefix=sql,
            params=normalized,
            param_index=len(normalized),
        )
        return self

    # ========== Clauses ==========

    def alias(self, alias: str) -> 'QueryBuilder':
        """
        Alias the SELECT target table (``FROM t AS alias``).

        Raises:
            QueryValidationError: If the current statement is not a SELECT
        """
        spec = self._spec
        if spec.verb is not Verb.SELECT or spec.table is None:
            msg = 'alias() requires a SELECT statement'
            raise QueryValidationError(msg, field_name='alias', sql=spec.sql)

        self._spec = spec.replace(alias=alias, prefix=select_prefix(spec.table, spec.fields, alias))
        return self

    def where(self, column: str, operator: ComparisonOperator | str, value: Any) -> 'QueryBuilder':  # noqa: ANN401
        """
        Add a WHERE predicate ``<column> <operator> :paramN``; predicates are AND-ed.

        Args:
            column: Column expression
            operator: Comparison operator
            value: Bound value (list/tuple for IN)
        """
        predicate, name = self._predicate(column, operator)
        self._spec = self._spec.replace(
            where=(*self._spec.where, predicate),
            params={**self._spec.params, name: value},
            param_index=self._spec.param_index + 1,
        )
        return self

    def having(self, column: str, operator: ComparisonOperator | str, value: Any) -> 'QueryBuilder':  # noqa: ANN401
        """
        Add a HAVING predicate; shares placeholder numbering with WHERE.

        Raises:
            QueryValidationError: If group_by() was not called for this statement
        """
        if not self._spec.group_by:
            msg = 'HAVING clause requires GROUP BY'
            raise QueryValidationError(msg, field_name='having', sql=self._spec.sql)

        predicate, name = self._predicate(column, operator)
        self._spec = self._spec.replace(
            having=(*self._spec.having, predicate),
            params={**self._spec.params, name: value},
            param_index=self._spec.param_index + 1,
        )
        return self

    def join(
        self,
        table: str,
        left_key: str,
        operator: ComparisonOperator | str,
        right_key: str,
        join_type: JoinType = JoinType.INNER,
    ) -> 'QueryBuilder':
        """
        Add a JOIN. Both keys are column references and are not parameterized.

        Args:
            table: Joined table (may include an alias)
            left_key: Left column reference
            operator: Comparison operator between the keys
            right_key: Right column reference
            join_type: INNER, LEFT or RIGHT
        """
        op = operator.value if isinstance(operator, ComparisonOperator) else operator
        fragment = f'{JoinType(join_type).value} {table} ON {left_key} {op} {right_key}'
        self._spec = self._spec.replace(joins=(*self._spec.joins, fragment))
        return self

    def order_by(self, column: str, direction: OrderDirection = OrderDirection.ASC) -> 'QueryBuilder':
        """Add an ORDER BY column."""
        fragment = f'{column} {OrderDirection(direction).value}'
        self._spec = self._spec.replace(order_by=(*self._spec.order_by, fragment))
        return self

    def group_by(self, column: str) -> 'QueryBuilder':
        """Add a GROUP BY column."""
        self._spec = self._spec.replace(group_by=(*self._spec.group_by, column))
        return self

    def limit(self, limit: int, offset: int = 0) -> 'QueryBuilder':
        """Set LIMIT/OFFSET. Values are stored as given, without clamping."""
        self._spec = self._spec.replace(limit=(limit, offset))
        return self

    # ========== Rendering & execution ==========

    def get_sql(self, pretty: bool = False) -> str:
        """
        Render the current statement.

        Args:
            pretty: Reindent with upper-case keywords (debug output)

        Returns:
            SQL text with named placeholders
        """
        sql = self._spec.sql
        if pretty and sql:
            return QueryExecutor.format_sql(sql)
        return sql

    def cache(self, ttl: int) -> 'QueryBuilder':
        """
        Arm result caching for following execute() calls.

        Args:
            ttl: Time-to-live in seconds passed to the cache backend

        Raises:
            QueryValidationError: If no cache backend is configured or ttl is not positive
        """
        if self._cache_backend is None:
            msg = 'cache() requires a cache backend'
            raise QueryValidationError(msg, field_name='cache')
        if ttl <= 0:
            msg = f'Cache TTL must be positive integer, got {ttl}'
            raise QueryValidationError(msg, field_name='cache')

        self._cache_ttl = ttl
        return self

    def no_cache(self) -> 'QueryBuilder':
        """Disarm result caching."""
        self._cache_ttl = None
        return self

    def execute(self) -> QueryResult:
        """
        Execute the current statement and clear it.

        Returns:
            QueryResult (from cache when armed and present)

        Raises:
            QueryValidationError: If the statement fails validation
            QueryExecutionError: If the driver fails
        """
        try:
            return QueryExecutor.execute(
                self._spec,
                self._provider,
                cache_backend=self._cache_backend,
                cache_ttl=self._cache_ttl,
                reject_empty_values=self._reject_empty_values,
            )
        finally:
            self.reset()

    def transaction(self, work: Callable[[Connection], T]) -> T:
        """Run work inside a transaction on the provider's connection."""
        return self._provider.transaction(work)

    def __str__(self) -> str:
        """Rendered SQL."""
        return self.get_sql()

    # ========== Helpers ==========

    def _predicate(self, column: str, operator: ComparisonOperator | str) -> tuple[str, str]:
        """Build ``<column> <op> :paramN`` and the placeholder name."""
        try:
            op = ComparisonOperator(operator)
        except ValueError as e:
            msg = f'Unsupported comparison operator: {operator}'
            raise QueryValidationError(msg, field_name=column) from e

        name = f'{PLACEHOLDER_PREFIX}{self._spec.param_index}'
        if name in self._spec.params:
            msg = f'Placeholder :{name} is already bound in this statement'
            raise QueryValidationError(msg, field_name=name, sql=self._spec.sql)

        logger.debug(f'Adding predicate {column} {op.value} :{name}')
        return f'{column} {op.value} :{name}', name

    @staticmethod
    def _data_columns(verb: str, data: Mapping[str, Any]) -> list[str]:
        """Column names of insert/update data."""
        if not data:
            msg = f'{verb}() requires at least one column'
            raise QueryValidationError(msg, field_name=verb)
        return list(data.keys())
