"""Query results - converts SQLAlchemy results to a standardized format."""

from collections.abc import Iterator
from dataclasses import dataclass
from dataclasses import field
from typing import Any

from sqlalchemy import CursorResult

from namerec.querybuilder.pagination import PaginationInfo


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Result of statement execution."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    row_count: int = 0
    pagination: PaginationInfo | None = None

    def __iter__(self) -> Iterator[dict[str, Any]]:
        """Iterate over result rows."""
        return iter(self.rows)

    def __len__(self) -> int:
        """Number of fetched rows."""
        return len(self.rows)

    def first(self) -> dict[str, Any] | None:
        """First row or None for an empty result."""
        return self.rows[0] if self.rows else None

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary with 'rows' and 'row_count' keys, optionally 'pagination'
        """
        result: dict[str, Any] = {
            'rows': self.rows,
            'row_count': self.row_count,
        }
        if self.pagination is not None:
            result['pagination'] = self.pagination.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'QueryResult':
        """Deserialize from external cache storage."""
        pagination = data.get('pagination')
        return cls(
            rows=[dict(row) for row in data.get('rows', [])],
            row_count=data.get('row_count', 0),
            pagination=PaginationInfo(**pagination) if pagination else None,
        )


class ResultBuilder:
    """Builds QueryResult values from SQLAlchemy cursor results."""

    @staticmethod
    def build_result(result: CursorResult, pagination: PaginationInfo | None = None) -> QueryResult:
        """
        Build QueryResult from SQLAlchemy result.

        Row-returning statements report the number of fetched rows;
        DML statements report the driver's affected row count.

        Args:
            result: SQLAlchemy cursor result
            pagination: Optional pagination metadata

        Returns:
            QueryResult with rows as column-name mappings
        """
        if not result.returns_rows:
            return QueryResult(rows=[], row_count=max(result.rowcount, 0), pagination=pagination)

        rows = ResultBuilder.extract_rows(result)
        return QueryResult(rows=rows, row_count=len(rows), pagination=pagination)

    @staticmethod
    def extract_rows(result: CursorResult) -> list[dict[str, Any]]:
        """
        Extract data rows from result.

        Args:
            result: SQLAlchemy cursor result

        Returns:
            List of rows (each row is an ordered column-name -> value mapping)
        """
        return [dict(row) for row in result.mappings()]
