"""Unit tests for startup cursor resolution."""

from __future__ import annotations

import pytest

from core.errors import ObserverStartupError, ObserverStoreError
from core.types import Cursor
from pipeline.initer import initial_cursor


class _FlakyStorer:
    def __init__(self, failures: int, cursor: Cursor) -> None:
        self.calls = 0
        self._failures = failures
        self._cursor = cursor

    def load_cursor(self) -> Cursor:
        self.calls += 1
        if self.calls <= self._failures:
            raise ObserverStoreError("database unavailable")
        return self._cursor


def test_initial_cursor_retries_until_storage_answers() -> None:
    """Transient storage failures should be retried."""
    storer = _FlakyStorer(failures=2, cursor=Cursor(pulse=70000, sequence=4))
    sleeps: list[float] = []

    cursor = initial_cursor(storer, attempts=3, interval=0.5, sleep=sleeps.append)

    assert cursor == Cursor(pulse=70000, sequence=4)
    assert storer.calls == 3 and sleeps == [0.5, 0.5]


def test_initial_cursor_fails_after_attempts() -> None:
    """Persistent storage failures should abort startup."""
    storer = _FlakyStorer(failures=10, cursor=Cursor.genesis())

    with pytest.raises(ObserverStartupError):
        initial_cursor(storer, attempts=2, interval=0.0, sleep=lambda _: None)

    assert storer.calls == 2
