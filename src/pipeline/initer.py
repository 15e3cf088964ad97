"""Startup cursor resolution."""

from __future__ import annotations

import time
from typing import Callable

from core.errors import ObserverError, ObserverStartupError
from core.logging_config import get_logger
from core.retry import retry_until_success
from core.types import Cursor
from store.storer import Storer

_LOGGER = get_logger(__name__)


def initial_cursor(
    storer: Storer,
    attempts: int,
    interval: float,
    sleep: Callable[[float], None] = time.sleep,
) -> Cursor:
    """Read where the previous run stopped.

    Args:
        storer: Storer that owns the progress tables.
        attempts: Maximum number of reads.
        interval: Seconds between failed reads.
        sleep: Sleep function, injectable for tests.

    Returns:
        Cursor at the last stored record, or the genesis cursor.

    Raises:
        ObserverStartupError: If storage stays unreadable after all attempts.
    """
    try:
        cursor = retry_until_success(
            storer.load_cursor,
            attempts=attempts,
            interval=interval,
            description="load_cursor",
            sleep=sleep,
        )
    except ObserverError as error:
        raise ObserverStartupError(
            f"Cannot establish the starting cursor after {attempts} attempts: {error}"
        ) from error
    _LOGGER.info(
        "cursor_loaded",
        pulse=cursor.pulse,
        sequence=cursor.sequence,
        exhausted=cursor.exhausted,
    )
    return cursor
