"""Package-scoped logging: structured records on the ``namerec.querybuilder`` logger tree."""

import logging
import sys
from typing import TextIO

import structlog

PACKAGE_LOGGER = 'namerec.querybuilder'

# Shared by structlog loggers and plain stdlib records from the package modules
PRE_CHAIN = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt='iso', utc=False),
]


def get_logger(name: str = PACKAGE_LOGGER) -> structlog.stdlib.BoundLogger:
    """
    Structured logger bound to a stdlib logger of the package.

    Does not depend on the global ``structlog.configure()`` state of the host
    application: records travel through the stdlib logger ``name`` and are
    rendered by whatever handler sits on the package logger.
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=[*PRE_CHAIN, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def configure_logging(
    log_level: str = 'INFO',
    stream: TextIO | None = None,
    json_output: bool = False,
    echo_sql: bool = False,
) -> logging.Logger:
    """
    Attach one structlog-rendering handler to the package logger.

    Root handlers and the host's structlog configuration are left alone;
    the package logger stops propagating so its records are not printed twice.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: Output stream (stderr by default)
        json_output: Render JSON lines instead of console text
        echo_sql: Route SQLAlchemy engine statement logging to the same handler

    Returns:
        The configured package logger
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=False)
    formatter = structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=PRE_CHAIN)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.handlers = [handler]
    package_logger.setLevel(numeric_level)
    package_logger.propagate = False

    if echo_sql:
        engine_logger = logging.getLogger('sqlalchemy.engine')
        engine_logger.addHandler(handler)
        engine_logger.setLevel(logging.INFO)

    return package_logger
