"""Root logging setup for the qr-session CLI and for embedders that want it."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
DEFAULT_MAX_BYTES = 500 * 1024
DEFAULT_BACKUP_COUNT = 2

# marks handlers installed here so a reconfigure leaves the host's handlers alone
_OWNER_ATTR = "_qr_session_handler"


def parse_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    numeric = logging.getLevelName(str(level).upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level '{level}'")
    return numeric


def installed_handlers(root: Optional[logging.Logger] = None) -> list[logging.Handler]:
    root = root or logging.getLogger()
    return [handler for handler in root.handlers if getattr(handler, _OWNER_ATTR, False)]


def remove_handlers(root: Optional[logging.Logger] = None) -> None:
    root = root or logging.getLogger()
    for handler in installed_handlers(root):
        root.removeHandler(handler)
        handler.close()


def _owned(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    setattr(handler, _OWNER_ATTR, True)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    level: Union[int, str] = logging.INFO,
    *,
    console: bool = True,
    log_file: Optional[Union[str, Path]] = None,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    quiet_loggers: Iterable[str] = (),
) -> list[logging.Handler]:
    """Install qr-session's handlers on the root logger.

    Args:
        level: Logging level as an int or a name such as "info".
        console: Log to stderr. stdout is left for decoded payloads.
        log_file: Optional path for a rotating log file.
        max_bytes: Size at which the log file rotates.
        backup_count: Rotated files to keep.
        quiet_loggers: Logger names raised to ERROR (chatty third-party libs).

    Handlers from an earlier call are replaced; handlers installed by anyone
    else stay. Returns the handlers that were installed.
    """

    numeric_level = parse_level(level)
    root = logging.getLogger()
    remove_handlers(root)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    handlers: list[logging.Handler] = []

    if console:
        handlers.append(_owned(logging.StreamHandler(sys.stderr), numeric_level, formatter))

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        handlers.append(_owned(file_handler, numeric_level, formatter))

    if not handlers and not root.handlers:
        handlers.append(_owned(logging.NullHandler(), numeric_level, formatter))

    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.ERROR)

    return handlers


__all__ = [
    "LOG_DATEFMT",
    "LOG_FORMAT",
    "configure_logging",
    "installed_handlers",
    "parse_level",
    "remove_handlers",
]
