"""Logging configuration for the application.

Application code logs through logfire. Standard library records from
uvicorn, alembic and SQLAlchemy are printed to stdout and forwarded to
logfire as well.
"""

import logging
import sys

import logfire

from sharing.config import Settings

# Libraries that log every request or statement at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "asyncpg", "uvicorn.access")


def setup_logging(settings: Settings) -> None:
    """Configure stdlib logging.

    Call after ``configure_logfire`` so forwarded records reach the
    configured project.

    Args:
        settings: Application settings
    """
    level = logging.DEBUG if settings.debug else logging.INFO

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logging.basicConfig(
        level=level,
        handlers=[console, logfire.LogfireLoggingHandler()],
        force=True,
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("sharing").setLevel(level)

    logging.getLogger(__name__).info(
        "Logging configured: environment=%s, level=%s",
        settings.environment,
        logging.getLevelName(level),
    )
