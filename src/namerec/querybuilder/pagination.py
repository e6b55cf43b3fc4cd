"""Pagination metadata for LIMIT-ed statements."""

import math
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class PaginationInfo:
    """Pagination metadata derived from a total row count."""

    current_page: int
    per_page: int
    total_pages: int
    total_items: int

    @property
    def has_next(self) -> bool:
        """Whether a page after the current one exists."""
        return self.current_page < self.total_pages

    @property
    def has_previous(self) -> bool:
        """Whether a page before the current one exists."""
        return self.current_page > 1

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary representation
        """
        return {
            'current_page': self.current_page,
            'per_page': self.per_page,
            'total_pages': self.total_pages,
            'total_items': self.total_items,
        }


def paginate(total: int, per_page: int, current_page: int) -> PaginationInfo:
    """
    Compute pagination metadata.

    ``current_page`` and ``per_page`` are passed through unchanged: a page past
    the last one is not an error.

    Args:
        total: Total number of rows matched by the statement
        per_page: Page size (must be positive)
        current_page: 1-based page number

    Returns:
        PaginationInfo

    Raises:
        ValueError: If per_page is not positive

    Example:
        >>> paginate(95, 10, 3)
        PaginationInfo(current_page=3, per_page=10, total_pages=10, total_items=95)
    """
    if per_page <= 0:
        msg = f'per_page must be positive integer, got {per_page}'
        raise ValueError(msg)

    return PaginationInfo(
        current_page=current_page,
        per_page=per_page,
        total_pages=math.ceil(total / per_page),
        total_items=total,
    )


def page_for_offset(offset: int, per_page: int) -> int:
    """1-based page number containing the row at ``offset``."""
    if per_page <= 0:
        msg = f'per_page must be positive integer, got {per_page}'
        raise ValueError(msg)
    return offset // per_page + 1
