"""Logging setup shared by the API process and maintenance scripts."""

import logging
from logging.config import dictConfig

from letrus_care.core.config import settings


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once; DEBUG when the app runs in debug mode."""
    if level is None:
        level = "DEBUG" if settings.debug else settings.log_level

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {"level": level.upper(), "handlers": ["console"]},
            "loggers": {
                # SQL echo is noisy even in debug
                "sqlalchemy.engine": {"level": "WARNING"},
                "apscheduler": {"level": "INFO"},
            },
        }
    )
    logging.getLogger(__name__).debug("Logging configured at %s", level)
