"""Central logging configuration for the fuel ledger."""
from __future__ import annotations

import logging
from logging.config import dictConfig
from pathlib import Path

from pydantic import ValidationError

from fuel_ledger.config import get_settings

APP_LOG_FILE = "fuel_ledger.log"
RUN_LOG_FILE = "ledger_runs.log"

# Loggers whose records are also kept in the per-run audit log
RUN_LOGGERS = (
    "fuel_ledger.services.ledger",
    "fuel_ledger.services.ledger_service",
    "scheduler",
)

QUIET_LOGGERS = {
    "sqlalchemy.engine": "WARNING",
    "apscheduler.executors.default": "WARNING",
    "filelock": "WARNING",
}

_configured = False


def build_logging_config(log_dir: Path, level: str) -> dict:
    """
    Logging dictConfig for the service, scheduler and CLI.

    Everything goes to the console and ``fuel_ledger.log``. Ledger runs and
    scheduler jobs are additionally written to ``ledger_runs.log`` so a
    recompute history can be read without request noise.
    """
    fmt = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    loggers: dict[str, dict] = {
        name: {"handlers": ["ledger_runs"], "level": level, "propagate": True}
        for name in RUN_LOGGERS
    }
    loggers.update({name: {"level": quiet} for name, quiet in QUIET_LOGGERS.items()})

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": fmt,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": level,
            },
            "file": {
                "class": "logging.FileHandler",
                "filename": str(log_dir / APP_LOG_FILE),
                "encoding": "utf-8",
                "formatter": "standard",
                "level": level,
            },
            "ledger_runs": {
                "class": "logging.FileHandler",
                "filename": str(log_dir / RUN_LOG_FILE),
                "encoding": "utf-8",
                "formatter": "standard",
                "level": "INFO",
            },
        },
        "root": {
            "level": level,
            "handlers": ["console", "file"],
        },
        "loggers": loggers,
    }


def configure_logging() -> None:
    """Configure application logging once per process."""

    global _configured
    if _configured:
        return

    try:
        settings = get_settings()
        log_dir = settings.log_dir
        level = settings.log_level
    except ValidationError:
        log_dir = Path("logs")
        level = "INFO"
    log_dir.mkdir(parents=True, exist_ok=True)

    dictConfig(build_logging_config(log_dir, level))
    logging.getLogger(__name__).debug("Logging configured | level=%s dir=%s", level, log_dir)
    _configured = True
