"""
Logging setup for the meeting voice bridge.

Everything logs through the ``voice_bridge`` logger. Console output always goes to
stdout; a size-rotated file under ``LOG_DIR`` is added unless ``LOG_DIR`` is set to an
empty string (e.g. in containers that only collect stdout).

The environment is read when ``configure_logging`` is called, not at import, so a
launcher can set ``LOG_LEVEL`` before the application module configures logging.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from voice_bridge.config.constants import LOGGER_NAME

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_NAME = "voice_bridge.log"
DEFAULT_LOG_DIR = "logs"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5


def _resolve_level(level: Optional[Union[str, int]]) -> int:
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


def _file_handler(log_dir: str, formatter: logging.Formatter, logger: logging.Logger):
    try:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            path / LOG_FILE_NAME, maxBytes=MAX_LOG_SIZE, backupCount=BACKUP_COUNT
        )
    except OSError as e:
        logger.warning(f"File logging disabled, cannot write to {log_dir}: {e}")
        return None
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    level: Optional[Union[str, int]] = None,
    log_dir: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the application logger.

    Args:
        level: Level name or number; defaults to ``LOG_LEVEL`` (INFO if unset or unknown)
        log_dir: Directory for the rotating log file; defaults to ``LOG_DIR`` ("logs").
            An empty string disables file logging.

    Returns:
        logging.Logger: The configured ``voice_bridge`` logger

    Calling it again replaces the previous handlers instead of adding more.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_resolve_level(level))
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_dir is None:
        log_dir = os.getenv("LOG_DIR", DEFAULT_LOG_DIR)
    if log_dir:
        file_handler = _file_handler(log_dir, formatter, logger)
        if file_handler is not None:
            logger.addHandler(file_handler)

    logger.debug(f"Logging configured (level: {logging.getLevelName(logger.level)}, dir: {log_dir or '-'})")
    return logger
