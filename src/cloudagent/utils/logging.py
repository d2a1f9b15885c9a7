"""Logging setup for cloudagent.

Console verbosity follows the number of ``-v`` flags:
- none: warnings only
- ``-v``: INFO
- ``-vv``: DEBUG
- ``-vvv``: DEBUG plus paramiko's transport log

An optional log file from the config file always receives DEBUG.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

ROOT_LOGGER = "cloudagent"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

VERBOSITY_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG, logging.DEBUG)


def get_log_level(verbosity: int) -> int:
    """Console level for a ``-v`` count."""
    return VERBOSITY_LEVELS[max(0, min(verbosity, len(VERBOSITY_LEVELS) - 1))]


def _formatter() -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)


def configure_logging(
    verbosity: int = 0,
    log_file: str | Path | None = None,
    log_level: str | None = None,
) -> None:
    """Install the console handler and, if requested, a file handler.

    Safe to call more than once; previous handlers are replaced.

    Args:
        verbosity: Number of ``-v`` flags.
        log_file: Log file path from the config file.
        log_level: Config file level, used only when no ``-v`` was given.
    """
    if log_level and verbosity == 0:
        level = getattr(logging, log_level.upper(), logging.WARNING)
    else:
        level = get_log_level(verbosity)

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(logging.DEBUG)
    root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(_formatter())
    root.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(_formatter())
        root.addHandler(file_handler)

    paramiko_logger = logging.getLogger("paramiko")
    paramiko_logger.handlers.clear()
    if verbosity >= 3:
        paramiko_logger.setLevel(logging.DEBUG)
        paramiko_logger.addHandler(console_handler)
    else:
        paramiko_logger.setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Logger for a cloudagent module.

    Example:
        >>> logger = get_logger("provisioner")
        >>> logger.name
        'cloudagent.provisioner'
    """
    if name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
