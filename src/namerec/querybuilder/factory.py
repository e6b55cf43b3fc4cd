"""Factory for builders configured from the environment."""

from namerec.querybuilder.builder import QueryBuilder
from namerec.querybuilder.cache.protocol import CacheBackend
from namerec.querybuilder.connection import ConnectionProvider
from namerec.querybuilder.core.config import ConnectionConfig
from namerec.querybuilder.core.config import DatabaseSettings


def create_query_builder(
    cache_backend: CacheBackend | None = None,
    settings: DatabaseSettings | ConnectionConfig | None = None,
    reject_empty_values: bool = True,
) -> QueryBuilder:
    """
    Create a QueryBuilder with its own connection provider.

    Args:
        cache_backend: Optional cache backend
        settings: Database settings or connection config (default: read DB_* environment)
        reject_empty_values: Reject empty bound values on execute()

    Returns:
        QueryBuilder (not connected until the first execute())

    Example:
        # DB_DRIVER=sqlite DB_DATABASE=app.db
        builder = create_query_builder(cache_backend=MemoryCacheBackend())
    """
    if settings is None:
        settings = DatabaseSettings()

    config = settings.to_connection_config() if isinstance(settings, DatabaseSettings) else settings

    return QueryBuilder(
        ConnectionProvider(config),
        cache_backend=cache_backend,
        reject_empty_values=reject_empty_values,
    )
