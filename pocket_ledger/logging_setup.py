"""Logging configuration for the ``pocket_ledger`` package.

Library modules only call ``get_logger(__name__)``. The CLI (or a host
application) applies ``build_logging_config`` once via ``configure_logging``.
"""

import logging
import logging.config
import os

PKG_LOGGER_NAME = "pocket_ledger"
LEVEL_ENV = "POCKET_LEDGER_LOG_LEVEL"
LOG_FILE_ENV = "POCKET_LEDGER_LOG_FILE"

_CONFIGURED = False


def resolve_level(level: int | str | None) -> str:
    """Turn an int, a level name or None into a level name.

    None (or an unknown name) falls back to ``POCKET_LEDGER_LOG_LEVEL`` and
    then to WARNING.
    """
    for candidate in (level, os.getenv(LEVEL_ENV)):
        if isinstance(candidate, int):
            return logging.getLevelName(candidate)
        if isinstance(candidate, str):
            name = candidate.strip().upper()
            if name.isdigit():
                return logging.getLevelName(int(name))
            if isinstance(logging.getLevelName(name), int):
                return name
    return "WARNING"


def build_logging_config(level: int | str | None = None, log_file: str | None = None) -> dict:
    """Return a ``logging.config.dictConfig`` mapping for the package logger.

    Args:
        level: Level for the console handler and the package logger.
        log_file: Optional path of a rotating DEBUG log; defaults to
            ``POCKET_LEDGER_LOG_FILE`` when that is set.
    """
    level_name = resolve_level(level)
    log_file = log_file or os.getenv(LOG_FILE_ENV)

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level_name,
            "formatter": "simple",
            "stream": "ext://sys.stderr",
        },
    }
    if log_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "verbose",
            "filename": log_file,
            "maxBytes": 1_000_000,
            "backupCount": 3,
            "encoding": "utf-8",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "simple": {"format": "%(levelname)s %(name)s: %(message)s"},
            "verbose": {
                "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": handlers,
        "loggers": {
            PKG_LOGGER_NAME: {
                "level": "DEBUG" if log_file else level_name,
                "handlers": list(handlers),
                "propagate": False,
            },
        },
    }


def configure_logging(level: int | str | None = None, log_file: str | None = None) -> None:
    """Apply the package logging configuration, once per process."""
    global _CONFIGURED
    if _CONFIGURED:
        return
    logging.config.dictConfig(build_logging_config(level, log_file))
    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger, keeping the package silent until configured."""
    pkg_logger = logging.getLogger(PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
