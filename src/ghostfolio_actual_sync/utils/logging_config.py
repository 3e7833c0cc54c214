"""Logging configuration for the sync application."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

ROOT_LOGGER_NAME = "ghostfolio_actual_sync"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"

# httpx logs every request line at INFO
HTTP_LOGGERS = ("httpx", "httpcore")

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def resolve_level(level: Union[int, str]) -> int:
    """Numeric level for ``level``; unknown names fall back to INFO."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Path] = None,
    log_format: Optional[str] = None,
) -> logging.Logger:
    """
    Configure logging for the sync run.

    Calling it again replaces the handlers installed by an earlier call.

    Args:
        level: Logging level, numeric or a name such as "DEBUG"
        log_file: Optional rotating log file; it always records DEBUG
        log_format: Console format string

    Returns:
        The package's root logger
    """
    numeric_level = resolve_level(level)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(numeric_level)
    logger.handlers = [_console_handler(numeric_level, log_format or DEFAULT_FORMAT)]
    if log_file:
        logger.addHandler(_file_handler(log_file))

    http_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)

    return logger


def _console_handler(level: int, log_format: str) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(log_format))
    return handler


def _file_handler(log_file: Path) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler
