"""Logging setup for the firmware update controller.

All components log through children of the ``fwupdate`` logger
(``fwupdate.transport``, ``fwupdate.poller``, ...), so configuring the root
of that tree once is enough for the service and the CLI.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, Union

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
DEFAULT_LOG_FILE = "./logs/fwupdate.log"
LOG_LEVEL_ENV = "FWUPDATE_LOG_LEVEL"


def parse_level(level: Union[int, str]) -> int:
    """Resolve a logging level given as a number or a name like "debug".

    Raises:
        ValueError: If the name is not a standard logging level
    """
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def _build_handlers(
    log_file: Optional[str],
    max_bytes: int,
    backup_count: int,
    console: bool,
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
            )
        )
    if console:
        handlers.append(logging.StreamHandler())
    return handlers


def setup_logger(
    name: str = "fwupdate",
    log_file: Optional[str] = DEFAULT_LOG_FILE,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 3,
    level: Union[int, str] = logging.INFO,
    console: bool = True,
) -> logging.Logger:
    """Configure the controller's logger tree.

    Args:
        name: Logger name; component loggers are its children
        log_file: Rotating log file path, or None for console only
        max_bytes: Max file size before rotation
        backup_count: Number of rotated files to keep
        level: Level as an int or a name ("INFO", "debug", ...)
        console: Also log to stderr

    Returns:
        The configured logger. Calling again only updates the level.

    Raises:
        ValueError: If level is an unknown name
    """
    resolved = parse_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(resolved)

    if not logger.handlers:
        formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
        for handler in _build_handlers(log_file, max_bytes, backup_count, console):
            handler.setFormatter(formatter)
            logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(resolved)
    return logger
