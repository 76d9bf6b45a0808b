"""structlog setup for hosts embedding the engine."""

import logging
import os

import structlog

_SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
]


def configure_logging(env: str | None = None) -> None:
    """Configure structlog for the given environment.

    Args:
        env: "production" gives JSON lines at INFO and above; anything else
            gives the console renderer with DEBUG events. Defaults to the
            ``ENV`` environment variable.
    """
    env = (env or os.getenv("ENV", "development")).lower()
    production = env == "production"

    renderer = (
        structlog.processors.JSONRenderer()
        if production
        else structlog.dev.ConsoleRenderer()
    )
    level = logging.INFO if production else logging.DEBUG

    structlog.configure(
        processors=[*_SHARED_PROCESSORS, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
