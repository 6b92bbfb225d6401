"""structlog configuration for command-line runs."""

import logging
import sys

import structlog

from session_rag.core.settings import AppConfig


def configure_logging(config: AppConfig) -> None:
    """Route structlog events to stderr, dropping events below the log level.

    Development runs get the console renderer; other environments emit one
    JSON object per event.
    """
    renderer: structlog.typing.Processor
    if config.is_development:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
