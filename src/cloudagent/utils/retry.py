"""Exponential backoff for connection establishment.

Only SSH connects are retried, while a freshly created VM is still
booting. Terraform applies and remote commands are never wrapped with
this decorator because they are not safely repeatable.
"""

from __future__ import annotations

import functools
import random
import time
from collections.abc import Callable
from typing import ParamSpec, TypeVar

from cloudagent.utils.logging import get_logger

logger = get_logger("retry")

P = ParamSpec("P")
T = TypeVar("T")


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Delay before the retry that follows ``attempt`` (1-based), with 0-50% jitter."""
    delay = min(base_delay * 2 ** (attempt - 1), max_delay)
    return delay * (1 + random.random() * 0.5)


def retry_with_backoff(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Retry the decorated call when it raises one of ``exceptions``.

    Args:
        max_attempts: Attempts including the first one.
        base_delay: Delay after the first failure, doubled each time.
        max_delay: Upper bound for a single delay.
        exceptions: Exception types that trigger a retry.

    Example:
        >>> @retry_with_backoff(max_attempts=3, exceptions=(SSHTimeoutError,))
        ... def connect():
        ...     ...
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            attempt = 1
            while True:
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_attempts:
                        logger.error(f"{func.__name__} failed after {attempt} attempts: {e}")
                        raise
                    delay = backoff_delay(attempt, base_delay, max_delay)
                    logger.warning(
                        f"{func.__name__} attempt {attempt}/{max_attempts} failed: {e}. "
                        f"Retrying in {delay:.1f}s"
                    )
                    time.sleep(delay)
                    attempt += 1

        return wrapper

    return decorator
