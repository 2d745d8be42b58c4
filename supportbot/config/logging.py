"""
Logging configuration and setup.

Everything logs under the ``supportbot`` logger: a colored console handler,
plus a plain file handler when LOG_FILE is set.
"""

import logging
import sys
from pathlib import Path

from supportbot.config.settings import Settings

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name for console output."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Color a copy so file handlers sharing the record see the plain level name
        record = logging.makeLogRecord(record.__dict__)
        if record.levelname in self.COLORS:
            record.levelname = f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"
        return super().format(record)


def setup_logging(settings: Settings) -> logging.Logger:
    """
    Configure the ``supportbot`` logger from settings.

    Safe to call again (e.g. after a --log-level override): previous handlers
    are replaced, not stacked.

    Args:
        settings: Application settings containing log configuration

    Returns:
        The configured package logger
    """
    level = getattr(logging, settings.log_level)
    package_logger = logging.getLogger("supportbot")
    package_logger.setLevel(level)
    package_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    package_logger.addHandler(console_handler)

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
        package_logger.addHandler(file_handler)

    # uvicorn and litellm configure the root logger on their own
    package_logger.propagate = False

    package_logger.info(f"Logging initialized - Level: {settings.log_level}")
    if settings.log_file:
        package_logger.info(f"Logging to file: {settings.log_file}")
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Module names already inside the package (``supportbot.llm.gateway``) are
    used as-is; anything else is namespaced under ``supportbot``.

    Args:
        name: Logger name (typically __name__)
    """
    if name == "supportbot" or name.startswith("supportbot."):
        return logging.getLogger(name)
    return logging.getLogger(f"supportbot.{name}")
