"""Unit tests for bounded retry."""

from __future__ import annotations

import pytest

from core.errors import ObserverFetchError
from core.retry import retry_until_success


def test_retry_returns_first_success() -> None:
    """The first successful result should be returned."""
    outcomes = iter([ObserverFetchError("down"), "ready"])
    sleeps: list[float] = []

    def operation() -> str:
        outcome = next(outcomes)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    result = retry_until_success(operation, 3, 1.5, "load_cursor", sleep=sleeps.append)

    assert result == "ready" and sleeps == [1.5]


def test_retry_reraises_after_last_attempt() -> None:
    """The final failure should propagate once attempts run out."""
    calls: list[int] = []

    def operation() -> None:
        calls.append(1)
        raise ObserverFetchError("down")

    with pytest.raises(ObserverFetchError):
        retry_until_success(operation, 2, 0.0, "load_cursor", sleep=lambda _: None)

    assert len(calls) == 2


def test_retry_does_not_catch_foreign_errors() -> None:
    """Programming errors should not be retried."""

    def operation() -> None:
        raise RuntimeError("bug")

    with pytest.raises(RuntimeError):
        retry_until_success(operation, 5, 0.0, "load_cursor", sleep=lambda _: None)
