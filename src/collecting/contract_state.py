"""Helpers shared by domain collectors for reading contract state."""

from __future__ import annotations

from typing import Any, Mapping

from core.constants import GENESIS_PULSE_NUMBER, MAX_STORED_INTEGER
from core.errors import ObserverDecodeError
from core.logging_config import get_logger
from ledger.codec import decode_memory, first_return_value
from ledger.records import Record, as_result, pulse_timestamp

_LOGGER = get_logger(__name__)


def account_balance(memory: bytes) -> str:
    """Read the balance held in account memory; absent memory means zero."""
    if not memory:
        _LOGGER.warning("account_memory_missing")
        return "0"
    state = decode_memory(memory, "account memory")
    return str(state.get("balance", "0"))


def record_timestamp(pulse_number: int) -> int:
    """Unix time of a pulse as required by a domain entity.

    Raises:
        ObserverDecodeError: If the pulse has no wall-clock time.
    """
    try:
        return pulse_timestamp(pulse_number)
    except ValueError as error:
        raise ObserverDecodeError(str(error)) from error


def hold_release_timestamp(state: Mapping[str, Any]) -> int:
    """Unix time a deposit hold ends, zero when no hold pulse is set.

    Raises:
        ObserverDecodeError: If the hold pulse does not fit a stored integer.
    """
    pulse_number = state.get("pulseDepositUnHold")
    if not isinstance(pulse_number, int) or pulse_number < GENESIS_PULSE_NUMBER:
        return 0
    return _stored_integer("pulseDepositUnHold", pulse_timestamp(pulse_number))


def int_field(state: Mapping[str, Any], key: str) -> int:
    """Read an integer field of contract memory, zero when absent.

    Raises:
        ObserverDecodeError: If the value is not a finite integer that fits
            a signed 64-bit column.
    """
    value = state.get(key, 0)
    if value is None:
        return 0
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError) as error:
        raise ObserverDecodeError(f"Field '{key}' is not an integer: {value!r}.") from error
    return _stored_integer(key, number)


def _stored_integer(key: str, number: int) -> int:
    if not -MAX_STORED_INTEGER - 1 <= number <= MAX_STORED_INTEGER:
        raise ObserverDecodeError(f"Field '{key}' is out of the storable range: {number}.")
    return number


def log_dropped(collector: str, record: Record, error: Exception) -> None:
    """Log a record whose chain could not be turned into an entity."""
    _LOGGER.error(
        "collector_dropped_record",
        collector=collector,
        record_id=str(record.id),
        pulse=record.pulse_number,
        error=str(error),
    )


def returned_value(record: Record) -> Any:
    """First value returned by the call a Result record answers.

    Raises:
        ObserverDecodeError: If the record is not a Result of a successful call.
    """
    result = as_result(record)
    if result is None:
        raise ObserverDecodeError(f"Record {record.id} is not a Result.")
    return first_return_value(result)
