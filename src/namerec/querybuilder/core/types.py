"""Closed vocabularies used to assemble SQL fragments."""

from enum import Enum


class ComparisonOperator(str, Enum):
    """Operators allowed in WHERE and HAVING predicates."""

    EQUALS = '='
    NOT_EQUALS = '!='
    GREATER_THAN = '>'
    LESS_THAN = '<'
    GREATER_THAN_OR_EQUALS = '>='
    LESS_THAN_OR_EQUALS = '<='
    LIKE = 'LIKE'
    IN = 'IN'


class JoinType(str, Enum):
    """JOIN kinds."""

    INNER = 'INNER JOIN'
    LEFT = 'LEFT JOIN'
    RIGHT = 'RIGHT JOIN'


class OrderDirection(str, Enum):
    """ORDER BY directions."""

    ASC = 'ASC'
    DESC = 'DESC'


class Verb(str, Enum):
    """Statement kinds. Each verb starts a new statement."""

    SELECT = 'select'
    INSERT = 'insert'
    UPDATE = 'update'
    DELETE = 'delete'
    RAW = 'raw'
