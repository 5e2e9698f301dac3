"""Logging setup for the fitness log API and its client tooling.

The server runs uvicorn with ``log_config=None`` so uvicorn's own loggers
flow through the handlers configured here instead of its defaults. Request
access lines go to a separate file so workout activity stays readable.
"""
from __future__ import annotations

import logging
from logging.config import dictConfig
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from app.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
ACCESS_FORMAT = "%(asctime)s | %(message)s"

_configured = False


def build_logging_config(
    log_dir: Path,
    level: str,
    log_file: str = "fitness_log.log",
    access_log_file: str = "access.log",
    echo_sql: bool = False,
) -> dict[str, Any]:
    """
    Build the ``dictConfig`` mapping for the service.

    Args:
        log_dir: Directory holding the application and access log files
        level: Root level for console and application file output
        log_file: Application log file name inside ``log_dir``
        access_log_file: uvicorn access log file name inside ``log_dir``
        echo_sql: Emit SQLAlchemy statements at INFO (debug mode)
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": LOG_FORMAT},
            "access": {"format": ACCESS_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": level,
            },
            "file": {
                "class": "logging.FileHandler",
                "filename": str(log_dir / log_file),
                "encoding": "utf-8",
                "formatter": "standard",
                "level": level,
            },
            "access_file": {
                "class": "logging.FileHandler",
                "filename": str(log_dir / access_log_file),
                "encoding": "utf-8",
                "formatter": "access",
            },
        },
        "loggers": {
            "uvicorn": {"level": level},
            "uvicorn.error": {"level": level},
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["access_file"],
                "propagate": False,
            },
            "sqlalchemy.engine": {"level": "INFO" if echo_sql else "WARNING"},
            "alembic": {"level": "INFO"},
            # One add_job/remove_job line per banner otherwise
            "apscheduler": {"level": "WARNING"},
        },
        "root": {
            "level": level,
            "handlers": ["console", "file"],
        },
    }


def configure_logging() -> None:
    """Apply the logging config once per process; later calls are no-ops."""
    global _configured
    if _configured:
        return

    try:
        settings = get_settings()
        log_dir, level = settings.log_dir, settings.log_level
        log_file, echo_sql = settings.log_file, settings.debug
    except ValidationError:
        # Bad environment: still log somewhere so the settings error is visible
        log_dir, level, log_file, echo_sql = Path("logs"), "INFO", "fitness_log.log", False
    log_dir.mkdir(parents=True, exist_ok=True)

    dictConfig(build_logging_config(log_dir, level, log_file=log_file, echo_sql=echo_sql))
    _configured = True
    logging.getLogger(__name__).info(
        "Logging to %s at %s (sql echo %s)", log_dir / log_file, level, "on" if echo_sql else "off"
    )
