"""
Logging setup for gopro-join

stdout belongs to the progress reporters (tqdm bars, JSON lines), so log
records go to stderr and, optionally, to a file.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_loggers = {}


def _handler(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logger(
    name: str,
    log_file: Optional[str] = None,
    level: str = "INFO",
    format_string: Optional[str] = None,
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Configure the logger that owns a package's log records

    Existing handlers are closed and replaced, so the CLI can call this once
    more after the YAML file and command line have settled the final level.

    Args:
        name: Logger name, normally the top-level package ``gopro_join``
        log_file: Also append records to this file (parents are created)
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        format_string: Record format, LOG_FORMAT when omitted
        stream: Console stream, stderr when omitted

    Returns:
        The configured logger
    """
    numeric_level = getattr(logging, level.upper())
    formatter = logging.Formatter(format_string or LOG_FORMAT)

    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)
    logger.propagate = False

    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    logger.addHandler(_handler(logging.StreamHandler(stream or sys.stderr), numeric_level, formatter))

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(_handler(logging.FileHandler(log_file), numeric_level, formatter))

    _loggers[name] = logger
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a module

    Names passed to setup_logger come back as configured. Any other name,
    e.g. ``gopro_join.merger``, gets a handler-less logger whose records
    propagate to the ``gopro_join`` logger.
    """
    if name in _loggers:
        return _loggers[name]

    return logging.getLogger(name)
