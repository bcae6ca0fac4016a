from __future__ import annotations

import logging
import logging.handlers
import os

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

CONSOLE_HANDLER = "reviews.console"
FILE_HANDLER = "reviews.file"

# Broker and HTTP client libraries log every connection at INFO
QUIET_LOGGERS = ("amqp", "kombu", "celery", "aiohttp.access")


def _file_handler(path: str, *, max_bytes: int, backup_count: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.set_name(FILE_HANDLER)
    return handler


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.set_name(CONSOLE_HANDLER)
    return handler


def _install(root: logging.Logger, handler: logging.Handler) -> None:
    """Add handler, replacing one of ours with the same name."""
    for existing in list(root.handlers):
        if existing.get_name() == handler.get_name():
            root.removeHandler(existing)
            existing.close()
    root.addHandler(handler)


def configure_logging(
    *,
    log_dir: str,
    level: str = "INFO",
    filename: str = "reviews.log",
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> str:
    """Console + rotating file logging on the root logger.

    Safe to call again: our handlers are replaced, anything else attached to
    the root logger (pytest capture, uvicorn) is left alone. Returns the log
    file path.
    """
    os.makedirs(log_dir, exist_ok=True)
    path = os.path.abspath(os.path.join(log_dir, filename))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in (_console_handler(), _file_handler(path, max_bytes=max_bytes, backup_count=backup_count)):
        handler.setFormatter(formatter)
        _install(root, handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(root.level, logging.WARNING))

    return path
