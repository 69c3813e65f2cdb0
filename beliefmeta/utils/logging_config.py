"""
Console and file logging for the beliefmeta command.

Library modules only call ``get_logger``; handlers are attached once by the
CLI through ``setup_logging``.
"""

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Optional

import colorama
from colorama import Fore, Style

colorama.init(autoreset=True)

ROOT_LOGGER_NAME = "beliefmeta"
DEFAULT_LOG_FILE = "logs/beliefmeta.log"


class LogLevel(str, Enum):
    """Console verbosity of a run."""

    NORMAL = "normal"
    VERBOSE = "verbose"
    DEBUG = "debug"


_CONSOLE_FORMATS = {
    LogLevel.NORMAL: "%(levelname)-8s | %(message)s",
    LogLevel.VERBOSE: "%(asctime)s | %(levelname)-8s | %(message)s",
    LogLevel.DEBUG: "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
}

_FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"


class ColoredFormatter(logging.Formatter):
    """Colors the level name without touching the shared record."""

    COLORS = {
        "DEBUG": Fore.CYAN,
        "INFO": Fore.GREEN,
        "WARNING": Fore.YELLOW,
        "ERROR": Fore.RED,
        "CRITICAL": Fore.RED + Style.BRIGHT,
    }

    def format(self, record):
        color = self.COLORS.get(record.levelname, "")
        # File handlers format the same record after this one.
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{Style.RESET_ALL}"
        return super().format(record)


def setup_logging(
    level: LogLevel = LogLevel.NORMAL,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Attach console (and optionally file) handlers to the package logger.

    Args:
        level: Console verbosity; NORMAL shows INFO and above, the others DEBUG
        log_file: When given, everything down to DEBUG is also written here

    Returns:
        The configured package logger
    """
    level = LogLevel(level)
    console_level = logging.INFO if level is LogLevel.NORMAL else logging.DEBUG

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(logging.DEBUG if log_file else console_level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(ColoredFormatter(_CONSOLE_FORMATS[level], datefmt="%H:%M:%S"))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return ``name`` nested under the package logger."""
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
