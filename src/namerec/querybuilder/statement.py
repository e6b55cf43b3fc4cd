"""Immutable statement specification and SQL rendering."""

import dataclasses
from dataclasses import dataclass
from dataclasses import field
from typing import Any

from namerec.querybuilder.core.types import Verb

PLACEHOLDER_PREFIX = 'param'
OFFSET_PARAM = 'offset'
LIMIT_PARAM = 'limit'
COUNT_FIELD = 'total'
COUNT_EXPRESSION = f'COUNT(*) AS {COUNT_FIELD}'


@dataclass(frozen=True)
class StatementSpec:
    """
    Immutable snapshot of one statement's clause state.

    ``prefix`` holds the rendered verb fragment (``SELECT ... FROM t``,
    ``INSERT INTO t (...) VALUES (...)``...). ``params`` maps placeholder names
    (without the leading colon) to bound values in insertion order.
    ``param_index`` numbers the next WHERE/HAVING placeholder and is shared
    between both clauses.
    """

    verb: Verb | None = None
    table: str | None = None
    fields: tuple[str, ...] = ()
    alias: str | None = None
    prefix: str = ''
    joins: tuple[str, ...] = ()
    where: tuple[str, ...] = ()
    group_by: tuple[str, ...] = ()
    having: tuple[str, ...] = ()
    order_by: tuple[str, ...] = ()
    limit: tuple[int, int] | None = None  # (limit, offset)
    params: dict[str, Any] = field(default_factory=dict)
    param_index: int = 0

    @property
    def is_empty(self) -> bool:
        """True when no verb started this statement."""
        return self.verb is None

    @property
    def sql(self) -> str:
        """Rendered SQL text."""
        return render(self)

    def replace(self, **changes: Any) -> 'StatementSpec':  # noqa: ANN401
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)

    def bound_parameters(self) -> dict[str, Any]:
        """
        All values bound at execution time.

        Returns:
            Placeholder params plus offset/limit integers when LIMIT is set
        """
        bound = dict(self.params)
        if self.limit is not None:
            limit, offset = self.limit
            bound[OFFSET_PARAM] = offset
            bound[LIMIT_PARAM] = limit
        return bound


def select_prefix(table: str, fields: tuple[str, ...], alias: str | None = None) -> str:
    """Render ``SELECT <fields> FROM <table> [AS <alias>]``."""
    prefix = f'SELECT {", ".join(fields)} FROM {table}'
    if alias:
        prefix = f'{prefix} AS {alias}'
    return prefix


def render(spec: StatementSpec) -> str:
    """
    Render a statement in fixed clause order.

    Order: verb prefix, JOIN, WHERE, GROUP BY, HAVING, ORDER BY, LIMIT.
    Clauses without fragments are omitted. LIMIT renders offset first.

    Args:
        spec: Statement specification

    Returns:
        SQL text with named placeholders
    """
    parts: list[str] = []
    if spec.prefix:
        parts.append(spec.prefix)
    if spec.joins:
        parts.append(' '.join(spec.joins))
    if spec.where:
        parts.append('WHERE ' + ' AND '.join(spec.where))
    if spec.group_by:
        parts.append('GROUP BY ' + ', '.join(spec.group_by))
    if spec.having:
        parts.append('HAVING ' + ' AND '.join(spec.having))
    if spec.order_by:
        parts.append('ORDER BY ' + ', '.join(spec.order_by))
    if spec.limit is not None:
        parts.append(f'LIMIT :{OFFSET_PARAM}, :{LIMIT_PARAM}')
    return ' '.join(parts)


def count_statement(spec: StatementSpec) -> StatementSpec:
    """
    Derive the total-count statement for a paginated statement.

    Fields are replaced by a single ``COUNT(*)`` expression, ORDER BY and
    LIMIT are dropped. Grouped and raw statements are wrapped in a derived
    table so that the count covers result rows rather than groups.

    Args:
        spec: SELECT or RAW statement specification

    Returns:
        New specification returning one row with a ``total`` column

    Raises:
        ValueError: If spec is not a SELECT or RAW statement
    """
    if spec.verb not in (Verb.SELECT, Verb.RAW):
        msg = f'Cannot derive count statement from {spec.verb} statement'
        raise ValueError(msg)

    inner = spec.replace(order_by=(), limit=None)

    if spec.verb is Verb.RAW or spec.group_by:
        return StatementSpec(
            verb=Verb.RAW,
            prefix=f'SELECT {COUNT_EXPRESSION} FROM ({render(inner)}) AS counted',
            params=dict(spec.params),
            param_index=spec.param_index,
        )

    return inner.replace(
        fields=(COUNT_EXPRESSION,),
        prefix=select_prefix(spec.table or '', (COUNT_EXPRESSION,), spec.alias),
        params=dict(spec.params),
    )
