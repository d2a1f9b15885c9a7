"""Utility modules for cloudagent.

This package contains shared utilities for logging, output formatting,
and retry logic.
"""

from cloudagent.utils.logging import configure_logging, get_logger
from cloudagent.utils.output import OutputFormatter, console
from cloudagent.utils.retry import retry_with_backoff

__all__ = [
    "OutputFormatter",
    "configure_logging",
    "console",
    "get_logger",
    "retry_with_backoff",
]
