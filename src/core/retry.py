"""Bounded retry helper for mandatory startup reads."""

from __future__ import annotations

import time
from typing import Callable, TypeVar

from core.errors import ObserverError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)

T = TypeVar("T")


def retry_until_success(
    operation: Callable[[], T],
    attempts: int,
    interval: float,
    description: str,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run operation until it succeeds or attempts run out.

    Args:
        operation: Zero-argument callable to run.
        attempts: Maximum number of calls, at least one.
        interval: Seconds to wait between failed calls.
        description: Event label used in log lines.
        sleep: Sleep function, injectable for tests.

    Returns:
        The first successful operation result.

    Raises:
        ObserverError: The last failure once attempts are exhausted.
    """
    attempt = 1
    while True:
        try:
            return operation()
        except ObserverError as error:
            _LOGGER.warning(
                "retry_attempt_failed",
                operation=description,
                attempt=attempt,
                attempts=attempts,
                error=str(error),
            )
            if attempt >= attempts:
                raise
        attempt += 1
        sleep(interval)
