"""Logging configuration for the schema-cache console script."""

import logging
import sys

import structlog


def configure_logging(log_level: str) -> None:
    """
    Route structlog and library logging to one stderr handler.

    Library modules log through the standard logging module and the CLI
    logs through structlog. Both share the processor chain below, so each
    line reads 'timestamp [level] logger: event key=value'.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level = logging.getLevelNamesMapping().get(log_level.upper(), logging.INFO)
    shared_processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt='%Y-%m-%d %H:%M:%S'),
    ]

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # stdout is reserved for command output
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
            foreign_pre_chain=shared_processors,
        )
    )
    logging.getLogger().handlers = [handler]
    logging.getLogger().setLevel(level)

    # SQLAlchemy echoes every reflection query at INFO
    logging.getLogger('sqlalchemy.engine').setLevel(max(level, logging.WARNING))
