"""
Logging configuration for Zotero Web MCP.

Console output goes to stderr because stdout carries the MCP stdio
transport. An optional rotating file handler writes to the cache
directory's ``logs/`` folder.
"""

from datetime import datetime
import logging
import logging.handlers
import os
from pathlib import Path
import sys

# -------------------- Configuration --------------------


PACKAGE_LOGGER = "zotero_web_mcp"

CONSOLE_FORMAT = "%(name)s %(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# -------------------- Global State --------------------


_loggers_configured: set[str] = set()


# -------------------- Utility Functions --------------------


def get_log_level() -> int:
    """
    Get the current log level from environment configuration.

    Checks LOG_LEVEL environment variable first, then DEBUG flag.

    Returns:
        Logging level constant (logging.DEBUG, logging.INFO, etc.)
    """
    level_str = os.getenv("LOG_LEVEL", "").upper()

    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }

    if level_str in level_map:
        return level_map[level_str]

    if os.getenv("DEBUG", "").lower() in ("true", "1", "yes"):
        return logging.DEBUG

    return logging.INFO


def get_log_file_path(log_dir: Path) -> Path:
    """
    Get the path to today's log file inside ``log_dir``.

    Creates the directory if it doesn't exist.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    today = datetime.now().strftime("%Y-%m-%d")
    return log_dir / f"zotero-web-mcp-{today}.log"


# -------------------- Setup Functions --------------------


def setup_logging(
    name: str,
    level: int | None = None,
    console: bool = True,
    log_dir: Path | None = None,
) -> logging.Logger:
    """
    Setup logging for a module with consistent formatting.

    Args:
        name: Logger name (usually __name__ or the package name)
        level: Log level (defaults to get_log_level())
        console: Add a stderr console handler
        log_dir: Add a rotating file handler in this directory

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logging("zotero_web_mcp")
        >>> logger.info("Starting server")
    """
    if name in _loggers_configured:
        return logging.getLogger(name)

    logger = logging.getLogger(name)
    logger.setLevel(level or get_log_level())
    logger.handlers.clear()
    logger.propagate = False

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logger.level)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(console_handler)

    if log_dir is not None:
        file_handler = logging.handlers.RotatingFileHandler(
            get_log_file_path(log_dir),
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logger.level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, DATE_FORMAT))
        logger.addHandler(file_handler)

    _loggers_configured.add(name)

    return logger


def initialize_logging(log_dir: Path | None = None) -> logging.Logger:
    """Configure the package root logger once for the server or CLI."""
    return setup_logging(PACKAGE_LOGGER, log_dir=log_dir)


def reset_logging() -> None:
    """Forget configured loggers so they can be set up again."""
    for name in list(_loggers_configured):
        logging.getLogger(name).handlers.clear()
    _loggers_configured.clear()
