"""Logging setup for the operations service.

Everything logs under the ``finops`` namespace. The console handler colours
the level name when attached to a terminal; the optional file handler always
writes plain text and rotates by size.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from finops.config.settings import LoggingConfig

ROOT_LOGGER_NAME = "finops"

_RESET = "\033[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}


class ColoredFormatter(logging.Formatter):
    """Formatter that wraps the level name in an ANSI colour"""

    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelno)
        if color is None:
            return super().format(record)

        # Other handlers see the same record
        original = record.levelname
        record.levelname = f"{color}{original}{_RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def _build_handlers(config: LoggingConfig, stream: TextIO) -> List[logging.Handler]:
    console = logging.StreamHandler(stream)
    if getattr(stream, "isatty", lambda: False)():
        console.setFormatter(ColoredFormatter(config.format))
    else:
        console.setFormatter(logging.Formatter(config.format))
    handlers: List[logging.Handler] = [console]

    if config.file_path:
        Path(config.file_path).parent.mkdir(parents=True, exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            config.file_path,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
        )
        rotating.setFormatter(logging.Formatter(config.format))
        handlers.append(rotating)

    return handlers


def setup_logging(
    config: Optional[LoggingConfig] = None,
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """Configure the ``finops`` logger; safe to call more than once.

    Args:
        config: level, format and optional log file
        stream: console stream, stdout by default

    Returns:
        The configured root ``finops`` logger
    """
    config = config or LoggingConfig()
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    for handler in _build_handlers(config, stream or sys.stdout):
        handler.setLevel(level)
        logger.addHandler(handler)

    logger.setLevel(level)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``finops`` namespace ("api" becomes "finops.api")."""
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
