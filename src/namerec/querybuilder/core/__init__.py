"""Core types, configuration and exceptions."""

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

__all__ = [
    'ComparisonOperator',
    'ConnectionConfig',
    'DatabaseSettings',
    'JoinType',
    'OrderDirection',
    'QueryBuilderError',
    'QueryExecutionError',
    'QueryValidationError',
    'TransactionError',
    'Verb',
]
