"""Connection configuration and environment-backed settings."""

from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from typing import Any

from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL

DEFAULT_CHARSET = 'utf8'
DEFAULT_COLLATION = 'utf8_unicode_ci'


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Immutable description of a single database connection.

    ``driver`` is a SQLAlchemy driver name (``sqlite``, ``mysql+pymysql``,
    ``postgresql+psycopg``...). ``options`` are passed to the DBAPI ``connect()``
    call as ``connect_args``.
    """

    driver: str
    database: str
    host: str | None = None
    port: int | None = None
    username: str | None = None
    password: str | None = None
    charset: str = DEFAULT_CHARSET
    collation: str | None = DEFAULT_COLLATION
    options: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_sqlite(self) -> bool:
        """SQLite ignores host, credentials and charset."""
        return self.driver.split('+', 1)[0] == 'sqlite'

    @property
    def is_mysql(self) -> bool:
        """MySQL family drivers (mysql, mariadb)."""
        return self.driver.split('+', 1)[0] in ('mysql', 'mariadb')

    def to_url(self) -> URL:
        """
        Build SQLAlchemy URL for this configuration.

        Returns:
            SQLAlchemy URL object
        """
        if self.is_sqlite:
            return URL.create(self.driver, database=self.database)

        query = {'charset': self.charset} if self.is_mysql and self.charset else {}
        return URL.create(
            self.driver,
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
            query=query,
        )


class DatabaseSettings(BaseSettings):
    """Database settings loaded from ``DB_*`` environment variables."""

    driver: str  # Required
    database: str  # Required
    host: str | None = None
    port: int | None = None
    username: str | None = None
    password: str | None = None
    charset: str = DEFAULT_CHARSET
    collation: str | None = DEFAULT_COLLATION
    options: dict[str, Any] = {}

    class Config:
        """Pydantic settings configuration."""

        env_prefix = 'DB_'
        # Relative path, resolved against the working directory when settings are created
        env_file = '.env'
        env_file_encoding = 'utf-8'
        case_sensitive = False
        extra = 'ignore'

    def to_connection_config(self) -> ConnectionConfig:
        """
        Convert settings to an immutable connection configuration.

        Returns:
            ConnectionConfig with the same values
        """
        return ConnectionConfig(
            driver=self.driver,
            database=self.database,
            host=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            charset=self.charset,
            collation=self.collation or None,
            options=dict(self.options),
        )
