from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
import os

LOG_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s"
LOG_FILE_NAME = "lists_client.log"

_HANDLER_MARKER = "_lists_client_handler"


def configure_logging(level: str = "INFO", log_dir: str | None = None) -> logging.Logger:
    """Install console and rotating file handlers on the package logger.

    Calling it again only updates the level.
    """
    package_logger = logging.getLogger("lists_client")
    package_logger.setLevel(level)

    if any(getattr(handler, _HANDLER_MARKER, False) for handler in package_logger.handlers):
        return package_logger

    formatter = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    setattr(stream_handler, _HANDLER_MARKER, True)
    package_logger.addHandler(stream_handler)

    if log_dir:
        try:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                os.path.join(log_dir, LOG_FILE_NAME),
                maxBytes=1_000_000,
                backupCount=3,
                encoding="utf-8",
            )
        except OSError:
            package_logger.warning("Log directory %s is not writable, logging to console only", log_dir)
        else:
            file_handler.setFormatter(formatter)
            setattr(file_handler, _HANDLER_MARKER, True)
            package_logger.addHandler(file_handler)

    return package_logger
