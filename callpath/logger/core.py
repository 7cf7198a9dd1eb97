"""
Core logging utilities

All callpath loggers are children of the ``callpath`` logger, which writes to
stderr. stdout is reserved for search results and the MCP stdio transport.
"""

import datetime
import logging
import os
import sys
from typing import Optional, TextIO

ROOT_LOGGER_NAME = "callpath"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# 默认只输出警告，终端上保持只有路径结果
logger = logging.getLogger(ROOT_LOGGER_NAME)
logger.setLevel(logging.WARNING)

console_handler = logging.StreamHandler(sys.stderr)
console_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
logger.addHandler(console_handler)


class LogTee:
    """Mirror a console stream into a log file (used by ``--log-file``)."""

    def __init__(self, console: TextIO, log_file: TextIO):
        self.console = console
        self.log_file = log_file

    def write(self, data: str) -> None:
        self.console.write(data)
        self.log_file.write(data)
        self.console.flush()
        self.log_file.flush()

    def flush(self) -> None:
        self.console.flush()
        self.log_file.flush()

    def isatty(self) -> bool:
        # Colors would end up in the log file
        return False


def get_timestamp() -> str:
    """Current local time as ``YYYY-mm-dd HH:MM:SS``."""
    return datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger below the ``callpath`` hierarchy.

    Args:
        name: Dotted logger name; names outside the hierarchy are nested
            under ``callpath``

    Returns:
        Logger instance
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logger(
    level: int = logging.WARNING,
    log_format: str = DEFAULT_FORMAT,
    log_file: Optional[str] = None,
    verbose: bool = False,
    debug: bool = False,
) -> None:
    """
    Configure the ``callpath`` logger.

    Args:
        level: Log level (default: WARNING)
        log_format: Log message format
        log_file: Also write log records to this file
        verbose: Lower the level to INFO
        debug: Lower the level to DEBUG
    """
    if debug:
        level = logging.DEBUG
    elif verbose and level > logging.INFO:
        level = logging.INFO

    logger.setLevel(level)

    formatter = logging.Formatter(log_format)
    for handler in logger.handlers:
        handler.setFormatter(formatter)

    if log_file:
        # Repeated CLI invocations in one process must not duplicate records
        already_attached = any(
            isinstance(handler, logging.FileHandler)
            and handler.baseFilename == os.path.abspath(log_file)
            for handler in logger.handlers
        )
        if not already_attached:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)


def debug(message: str, *args, **kwargs) -> None:
    """
    Log a debug message on the ``callpath`` logger.

    Args:
        message: Message to log
        *args: Additional arguments to pass to logger.debug
        **kwargs: Additional keyword arguments to pass to logger.debug
    """
    logger.debug(message, *args, **kwargs)


def info(message: str, *args, **kwargs) -> None:
    logger.info(message, *args, **kwargs)


def warning(message: str, *args, **kwargs) -> None:
    logger.warning(message, *args, **kwargs)


def error(message: str, *args, **kwargs) -> None:
    """Log an error message on the ``callpath`` logger."""
    logger.error(message, *args, **kwargs)
