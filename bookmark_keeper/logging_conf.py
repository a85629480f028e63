"""Logging configuration built around structlog JSON logging."""

from __future__ import annotations

import logging.config
from pathlib import Path
from typing import Any

import structlog

from .config import ConfigLocator

_LOGGING_INITIALISED = False
_JSON_FORMATTER = "pythonjsonlogger.jsonlogger.JsonFormatter"


def _file_handler(path: Path, level: str) -> dict[str, Any]:
    return {
        "class": "logging.FileHandler",
        "level": level,
        "filename": str(path),
        "encoding": "utf-8",
        "formatter": "json",
    }


def build_logging_config(log_dir: Path, verbose: bool = False) -> dict[str, Any]:
    """Return the ``dictConfig`` payload for the given log directory.

    Per-URL probe outcomes are debug events; they always land in
    ``probe.log`` so a quiet run can still be audited afterwards.
    """

    level = "DEBUG" if verbose else "INFO"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": _JSON_FORMATTER,
                "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
            }
        },
        "handlers": {
            # Console only shows problems; progress and results go through rich.
            "console": {
                "class": "logging.StreamHandler",
                "level": "DEBUG" if verbose else "WARNING",
                "formatter": "json",
            },
            "app_file": _file_handler(log_dir / "bookmark_keeper.log", level),
            "error_file": _file_handler(log_dir / "error.log", "ERROR"),
            "probe_file": _file_handler(log_dir / "probe.log", "DEBUG"),
        },
        "loggers": {
            "bookmark_keeper": {
                "handlers": ["console", "app_file", "error_file"],
                "level": level,
                "propagate": False,
            },
            "bookmark_keeper.prober": {
                "handlers": ["probe_file"],
                "level": "DEBUG",
            },
        },
    }


def configure_logging(verbose: bool = False, log_dir: Path | None = None) -> structlog.BoundLogger:
    """Configure structlog + stdlib handlers once and return the application logger."""

    global _LOGGING_INITIALISED
    if _LOGGING_INITIALISED:
        return structlog.get_logger("bookmark_keeper")
    log_dir = log_dir or ConfigLocator().logs_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(log_dir, verbose))

    # Events are rendered by the JSON formatter on each handler.
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _LOGGING_INITIALISED = True
    return structlog.get_logger("bookmark_keeper")


__all__ = ["build_logging_config", "configure_logging"]
