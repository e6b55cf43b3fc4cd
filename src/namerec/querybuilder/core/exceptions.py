"""Query builder exception hierarchy."""

from collections.abc import Mapping
from typing import Any


class QueryBuilderError(Exception):
    """Base exception for query builder errors."""

    def __init__(self, message: str, sql: str | None = None) -> None:
        """
        Initialize query builder exception.

        Args:
            message: Error message
            sql: Optional rendered SQL context
        """
        self.sql = sql
        super().__init__(message)


class QueryValidationError(QueryBuilderError, ValueError):
    """Statement failed validation before reaching the database."""

    def __init__(
        self,
        message: str,
        field_name: str | None = None,
        sql: str | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field_name: Optional placeholder or clause name that failed validation
            sql: Optional rendered SQL context
        """
        self.field_name = field_name
        super().__init__(message, sql)


class QueryExecutionError(QueryBuilderError, RuntimeError):
    """Raised when statement execution fails in the driver."""

    def __init__(
        self,
        message: str,
        sql: str | None = None,
        params: Mapping[str, Any] | None = None,
        code: str | int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """
        Initialize QueryExecutionError.

        Args:
            message: Error message
            sql: Rendered SQL that failed
            params: Bound parameters of the failed statement
            code: Driver error code, if the driver reported one
            original_error: Original exception that caused the error
        """
        self.params = dict(params) if params is not None else None
        self.code = code
        self.original_error = original_error
        super().__init__(message, sql)


class TransactionError(QueryBuilderError, RuntimeError):
    """Raised when a transactional unit of work fails and was rolled back."""

    def __init__(
        self,
        message: str,
        code: str | int | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        """
        Initialize TransactionError.

        Args:
            message: Error message
            code: Error code of the original failure, if any
            original_error: Exception raised by the unit of work
        """
        self.code = code
        self.original_error = original_error
        super().__init__(message)


def error_code(error: BaseException) -> str | int | None:
    """
    Extract a driver error code from an exception.

    DBAPI errors wrapped by SQLAlchemy carry the driver exception in ``orig``;
    its first argument is the numeric code for most drivers (MySQL, psycopg pgcode).
    Falls back to SQLAlchemy's own error code.
    """
    orig = getattr(error, 'orig', None)
    if orig is not None:
        pgcode = getattr(orig, 'pgcode', None)
        if pgcode:
            return pgcode
        args = getattr(orig, 'args', ())
        if args and isinstance(args[0], int):
            return args[0]
    return getattr(error, 'code', None)
