"""Ledger record model.

A record is an immutable ledger entry whose payload is exactly one of
the request, result or object lifecycle variants below. Accessors return
the variant or None so callers never cast blindly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from core.constants import GENESIS_PULSE_NUMBER, UNIX_TIME_OF_GENESIS_PULSE
from core.types import RecordID, Reference


@dataclass(frozen=True)
class IncomingRequest:
    """Call into a contract."""

    method: str
    prototype: Reference | None
    reason: RecordID | None
    arguments: bytes


@dataclass(frozen=True)
class OutgoingRequest:
    """Call made by a contract."""

    method: str
    reason: RecordID | None
    arguments: bytes


@dataclass(frozen=True)
class Result:
    """Outcome of a request."""

    request: RecordID
    payload: bytes


@dataclass(frozen=True)
class Activate:
    """Object creation."""

    request: RecordID
    image: Reference
    memory: bytes


@dataclass(frozen=True)
class Amend:
    """Object state change."""

    request: RecordID
    image: Reference
    memory: bytes
    prev_state: RecordID


@dataclass(frozen=True)
class Deactivate:
    """Object destruction."""

    request: RecordID
    image: Reference
    prev_state: RecordID


Payload = Union[IncomingRequest, OutgoingRequest, Result, Activate, Amend, Deactivate]


@dataclass(frozen=True)
class Record:
    """Ledger record with its position in the export stream.

    Attributes:
        id: Unique record identifier, ordered by pulse.
        sequence: Position of the record within its pulse.
        payload: Record variant.
    """

    id: RecordID
    sequence: int
    payload: Payload

    @property
    def pulse_number(self) -> int:
        return self.id.pulse_number


def as_incoming(item: object) -> IncomingRequest | None:
    if isinstance(item, Record) and isinstance(item.payload, IncomingRequest):
        return item.payload
    return None


def as_outgoing(item: object) -> OutgoingRequest | None:
    if isinstance(item, Record) and isinstance(item.payload, OutgoingRequest):
        return item.payload
    return None


def as_result(item: object) -> Result | None:
    if isinstance(item, Record) and isinstance(item.payload, Result):
        return item.payload
    return None


def as_activate(item: object) -> Activate | None:
    if isinstance(item, Record) and isinstance(item.payload, Activate):
        return item.payload
    return None


def as_amend(item: object) -> Amend | None:
    if isinstance(item, Record) and isinstance(item.payload, Amend):
        return item.payload
    return None


def pulse_timestamp(pulse_number: int) -> int:
    """Approximate the unix time of a pulse, one pulse per second from genesis.

    Raises:
        ValueError: If the pulse predates the genesis pulse.
    """
    if pulse_number < GENESIS_PULSE_NUMBER:
        raise ValueError(
            f"Pulse {pulse_number} predates genesis pulse {GENESIS_PULSE_NUMBER}; "
            "it has no wall-clock time."
        )
    return UNIX_TIME_OF_GENESIS_PULSE + (pulse_number - GENESIS_PULSE_NUMBER)
