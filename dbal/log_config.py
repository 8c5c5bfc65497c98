"""Logging setup for the dbal command line."""

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Loggers that get their own file when a log directory is given
FILE_LOGGERS = ["dbal.connection", "dbal.cli"]

LOG_FILE_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3


def _formatter():
    return logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)


def add_file_handlers(log_dir, level=logging.INFO):
    """Attach a RotatingFileHandler per logger in FILE_LOGGERS under `log_dir`."""
    os.makedirs(log_dir, exist_ok=True)
    for name in FILE_LOGGERS:
        log_file = os.path.join(log_dir, f"{name.replace('.', '_')}.log")
        handler = RotatingFileHandler(log_file, maxBytes=LOG_FILE_BYTES, backupCount=LOG_FILE_BACKUPS)
        handler.setLevel(level)
        handler.setFormatter(_formatter())
        logging.getLogger(name).addHandler(handler)


def setup_logging(level=logging.WARNING, log_dir=None):
    """Send log records to stderr, and to rotating files when `log_dir` is set.

    Nothing is written to disk unless a log directory is passed. Does
    nothing if the root logger already has handlers.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel(level)
    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(_formatter())
    root.addHandler(console)

    if log_dir:
        add_file_handlers(log_dir, level)
