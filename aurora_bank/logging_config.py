"""
Logging setup.

Every module logs through logging.getLogger(__name__). This module
installs the handlers once, when the application starts.
"""

import logging
from logging.config import dictConfig

from aurora_bank.config import get_settings


def configure_logging(level: str | None = None) -> None:
    """Configure root and library loggers for the application."""
    settings = get_settings()
    level = (level or settings.LOG_LEVEL).upper()

    dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            },
        },
        "loggers": {
            "aurora_bank": {"level": level},
            # SQL echo is noisy; only surface it in debug mode
            "sqlalchemy.engine": {
                "level": "INFO" if settings.DEBUG else "WARNING",
            },
        },
        "root": {"level": level, "handlers": ["console"]},
    })

    logging.getLogger(__name__).debug("Logging configured at %s", level)
