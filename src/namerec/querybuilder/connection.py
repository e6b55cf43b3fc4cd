"""Connection provider - one lazily opened, memoized database connection."""

import logging
from collections.abc import Callable
from typing import Any
from typing import TypeVar

from sqlalchemy import Connection
from sqlalchemy import Engine
from sqlalchemy import create_engine
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from namerec.querybuilder.core.config import ConnectionConfig
from namerec.querybuilder.core.exceptions import TransactionError
from namerec.querybuilder.core.exceptions import error_code

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ConnectionProvider:
    """
    Holds at most one live connection created from a ConnectionConfig.

    Not a pool: every builder sharing a provider shares the same connection,
    so concurrent use must be serialized by the caller.

    Example:
        provider = ConnectionProvider(ConnectionConfig(driver='sqlite', database=':memory:'))
        conn = provider.connect()  # opened on first call
        assert provider.connect() is conn  # memoized

        total = provider.transaction(
            lambda conn: conn.execute(text('SELECT COUNT(*) FROM users')).scalar_one()
        )
    """

    def __init__(self, config: ConnectionConfig, engine_options: dict[str, Any] | None = None) -> None:
        """
        Initialize provider.

        Args:
            config: Immutable connection configuration
            engine_options: Extra keyword arguments for sqlalchemy.create_engine()
        """
        self._config = config
        self._engine_options = dict(engine_options or {})
        self._engine: Engine | None = None
        self._connection: Connection | None = None
        self._in_transaction = False

    @property
    def config(self) -> ConnectionConfig:
        """Connection configuration."""
        return self._config

    @property
    def is_connected(self) -> bool:
        """Whether a connection is currently memoized."""
        return self._connection is not None

    @property
    def in_transaction(self) -> bool:
        """Whether transaction() is currently running a unit of work."""
        return self._in_transaction

    def connect(self) -> Connection:
        """
        Return the memoized connection, opening it on first use.

        Returns:
            Live SQLAlchemy connection
        """
        if self._connection is None:
            if self._engine is None:
                self._engine = self._create_engine()
            self._connection = self._engine.connect()
            logger.debug(f'Opened {self._config.driver} connection to {self._config.database}')

            if self._config.is_mysql and self._config.collation:
                self._connection.exec_driver_sql(
                    f"SET NAMES '{self._config.charset}' COLLATE '{self._config.collation}'"
                )
                self._connection.commit()

        return self._connection

    def disconnect(self) -> None:
        """Close the memoized connection; the next connect() reopens it."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            logger.debug(f'Closed {self._config.driver} connection to {self._config.database}')

        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

        self._in_transaction = False

    def transaction(self, work: Callable[[Connection], T]) -> T:
        """
        Run a unit of work inside a transaction on the memoized connection.

        Args:
            work: Callable receiving the live connection

        Returns:
            Whatever work returns, after commit

        Raises:
            TransactionError: If a transaction is already active, or work fails
                (the transaction is rolled back first). KeyboardInterrupt, SystemExit
                and other non-Exception errors are re-raised as is after rollback.
        """
        if self._in_transaction:
            msg = 'Transaction failed: a transaction is already active on this connection'
            raise TransactionError(msg)

        connection = self.connect()
        try:
            # Statements executed outside transaction() are committed by the executor,
            # anything left open here was started by the caller directly on the connection
            if connection.in_transaction():
                logger.warning('Rolling back pending work left open on the connection')
                connection.rollback()
            connection.begin()
        except SQLAlchemyError as e:
            msg = f'Transaction failed: {e}'
            raise TransactionError(msg, code=error_code(e), original_error=e) from e

        self._in_transaction = True
        logger.debug('Transaction started')
        try:
            result = work(connection)
            connection.commit()
        except Exception as e:
            connection.rollback()
            logger.debug(f'Transaction rolled back: {e}')
            msg = f'Transaction failed: {e}'
            raise TransactionError(msg, code=error_code(e), original_error=e) from e
        except BaseException:
            # Interrupts propagate unchanged, never with the work half applied
            connection.rollback()
            logger.debug('Transaction rolled back on interrupt')
            raise
        finally:
            self._in_transaction = False

        logger.debug('Transaction committed')
        return result

    def _create_engine(self) -> Engine:
        """Create SQLAlchemy engine for the configuration."""
        options = dict(self._engine_options)
        if self._config.options:
            connect_args = dict(options.pop('connect_args', {}))
            connect_args.update(self._config.options)
            options['connect_args'] = connect_args
        return create_engine(self._config.to_url(), **options)

    def ping(self) -> bool:
        """Run ``SELECT 1`` on the connection."""
        return self.connect().execute(text('SELECT 1')).scalar_one() == 1
