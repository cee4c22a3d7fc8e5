"""Logging for one servicectl invocation.

Step messages go to stderr in the operator style of ``-- message``;
``--trace`` additionally keeps a per-run log file of every supervisor and
account command issued.
"""
from __future__ import annotations

import logging
import os
from datetime import datetime

from servicectl.constants import APP_NAME

TRACE = 5
TRACE_DIR = "/var/log/servicectl"

logging.addLevelName(TRACE, "TRACE")

_FILE_FMT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_FILE_DATEFMT = "%Y-%m-%dT%H:%M:%S"


class _ConsoleFormatter(logging.Formatter):
    """``-- msg`` for progress, ``LEVEL: msg`` for problems, logger names when debugging."""

    def __init__(self, show_names: bool):
        super().__init__()
        self.show_names = show_names

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if self.show_names and record.levelno < logging.INFO:
            return f"{record.levelname} {record.name}: {message}"
        if record.levelno >= logging.WARNING:
            return f"{record.levelname}: {message}"
        return f"-- {message}"


def _console_level(debug: bool, trace: bool, verbose: bool) -> int:
    if trace and verbose:
        return TRACE
    if debug or trace:
        return logging.DEBUG
    return logging.INFO


def _trace_handler(directory: str) -> logging.FileHandler:
    os.makedirs(directory, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%dT%H%M%S")
    path = os.path.join(directory, f"{APP_NAME}-{timestamp}-{os.getpid()}.log")
    handler = logging.FileHandler(path)
    handler.setLevel(TRACE)
    handler.setFormatter(logging.Formatter(_FILE_FMT, datefmt=_FILE_DATEFMT))
    return handler


def setup_logging(
    *, debug: bool, trace: bool, verbose: bool, trace_dir: str | None = None
) -> logging.Logger:
    """Configure the ``servicectl`` logger; safe to call more than once."""
    logger = logging.getLogger(APP_NAME)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    logger.setLevel(TRACE)

    level = _console_level(debug, trace, verbose)
    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(_ConsoleFormatter(show_names=level < logging.INFO))
    logger.addHandler(console)

    if trace:
        directory = trace_dir or TRACE_DIR
        try:
            logger.addHandler(_trace_handler(directory))
        except OSError as e:
            # Tracing is a diagnostic aid; it never blocks the run
            logger.warning("Trace log disabled, cannot write to %s: %s", directory, e)

    return logger
