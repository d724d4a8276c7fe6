"""Logging setup for the idle guard.

Handlers are attached to the `ldap_idle` package logger, so an application
that configures logging itself does not need to call anything here.

- Console handler: always.
- File handler: only when a log directory is given; `ldap_idle.log` rotated
  at midnight (UTC), `retention_days` files kept.
"""
from __future__ import annotations

import glob
import logging
import os
import time
from logging.handlers import TimedRotatingFileHandler

from .env_settings import get_env

LOGGER_NAME = "ldap_idle"
LOG_FILE_NAME = "ldap_idle.log"

_LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Handlers we installed, removed again on reconfiguration.
_file_handler: logging.Handler | None = None
_console_handler: logging.Handler | None = None


def setup_logging(
    level: str = "INFO",
    log_dir: str = "",
    retention_days: int = 30,
) -> logging.Logger:
    global _file_handler, _console_handler

    level_str = (level or "INFO").strip().upper()
    if level_str not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        level_str = "INFO"
    log_level = getattr(logging, level_str, logging.INFO)

    retention_days = max(1, min(365, int(retention_days or 30)))

    logger = logging.getLogger(LOGGER_NAME)

    if _file_handler and _file_handler in logger.handlers:
        logger.removeHandler(_file_handler)
        _file_handler.close()
    _file_handler = None
    if _console_handler and _console_handler in logger.handlers:
        logger.removeHandler(_console_handler)
    _console_handler = None

    formatter = logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)

    ch = logging.StreamHandler()
    ch.setLevel(log_level)
    ch.setFormatter(formatter)
    logger.addHandler(ch)
    _console_handler = ch

    log_dir = (log_dir or "").strip()
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        fh = TimedRotatingFileHandler(
            os.path.join(log_dir, LOG_FILE_NAME),
            when="midnight",
            interval=1,
            backupCount=retention_days,
            encoding="utf-8",
            utc=True,
        )
        fh.suffix = "%Y-%m-%d"
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        logger.addHandler(fh)
        _file_handler = fh
        # Leftovers from an earlier, longer retention setting
        _cleanup_old_logs(log_dir, retention_days)

    logger.setLevel(log_level)
    logger.debug(
        "Logging configured: level=%s, dir=%s, retention=%d days",
        level_str, log_dir or "-", retention_days,
    )
    return logger


def setup_logging_from_env() -> logging.Logger:
    """setup_logging() with LDAP_LOG_LEVEL / LDAP_LOG_DIR / LDAP_LOG_RETENTION_DAYS."""
    env = get_env()
    return setup_logging(level=env.log_level, log_dir=env.log_dir, retention_days=env.log_retention_days)


def _cleanup_old_logs(log_dir: str, retention_days: int) -> None:
    cutoff = time.time() - (retention_days * 86400)
    for f in glob.glob(os.path.join(log_dir, LOG_FILE_NAME + ".*")):
        try:
            if os.path.getmtime(f) < cutoff:
                os.remove(f)
        except OSError:
            logging.getLogger(__name__).debug("Could not remove old log file %s", f, exc_info=True)
