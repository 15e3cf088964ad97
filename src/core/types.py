"""Shared typed models.

This module defines immutable identifiers and domain entities used by
the ledger, collecting, pipeline and store layers to keep interfaces
explicit and stable.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

import base58

from core.constants import (
    GENESIS_PULSE_NUMBER,
    PULSE_NUMBER_SIZE,
    RECORD_DIGEST_SIZE,
    TRANSFER_KIND_STANDARD,
)
from core.errors import ObserverDecodeError


@dataclass(frozen=True, order=True)
class RecordID:
    """Globally unique ledger record identifier.

    Attributes:
        pulse_number: Pulse the record was registered in.
        digest: Record content hash.
    """

    pulse_number: int
    digest: bytes

    def to_bytes(self) -> bytes:
        """Return the binary form: big-endian pulse followed by digest."""
        return self.pulse_number.to_bytes(PULSE_NUMBER_SIZE, "big") + self.digest

    @classmethod
    def from_bytes(cls, raw: bytes) -> "RecordID":
        """Build an identifier from its binary form.

        Raises:
            ObserverDecodeError: If the payload has the wrong size.
        """
        if len(raw) != PULSE_NUMBER_SIZE + RECORD_DIGEST_SIZE:
            raise ObserverDecodeError(
                f"Invalid record id: expected {PULSE_NUMBER_SIZE + RECORD_DIGEST_SIZE} bytes, "
                f"got {len(raw)}."
            )
        pulse_number = int.from_bytes(raw[:PULSE_NUMBER_SIZE], "big")
        return cls(pulse_number=pulse_number, digest=bytes(raw[PULSE_NUMBER_SIZE:]))

    @classmethod
    def from_string(cls, text: str) -> "RecordID":
        """Parse the base58 string form of an identifier.

        Raises:
            ObserverDecodeError: If the text is not a valid identifier.
        """
        try:
            raw = base58.b58decode(text)
        except ValueError as error:
            raise ObserverDecodeError(f"Invalid record id '{text}': {error}.") from error
        return cls.from_bytes(raw)

    def __str__(self) -> str:
        return base58.b58encode(self.to_bytes()).decode("ascii")


@dataclass(frozen=True)
class Reference:
    """Canonical string form of an object or prototype reference."""

    value: str

    @classmethod
    def of(cls, record_id: RecordID) -> "Reference":
        """Return the reference of an object created by the given request."""
        raw = record_id.to_bytes()
        return cls(base58.b58encode(raw + raw).decode("ascii"))

    @classmethod
    def genesis(cls, name: str) -> "Reference":
        """Return the reference of a well-known object created at genesis.

        Genesis objects have no creating request in the export stream, so
        their identity is derived from their name.
        """
        digest = hashlib.sha3_224(name.encode("utf-8")).digest()
        return cls.of(RecordID(pulse_number=GENESIS_PULSE_NUMBER, digest=digest))

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Pulse:
    """Ledger round metadata."""

    number: int
    entropy: bytes
    timestamp: int


@dataclass(frozen=True)
class Cursor:
    """Fetch progress checkpoint.

    Attributes:
        pulse: Last pulse whose records were fetched.
        sequence: Last record sequence fetched within that pulse.
        exhausted: Whether the pulse is known to have no further records.
    """

    pulse: int
    sequence: int
    exhausted: bool = False

    @classmethod
    def genesis(cls) -> "Cursor":
        """Cursor used when storage holds no progress yet."""
        return cls(pulse=0, sequence=0, exhausted=True)


@dataclass(frozen=True)
class Member:
    """Member account created by a member.create call."""

    member_ref: Reference
    balance: str
    migration_address: str
    account_state: RecordID
    status: str


@dataclass(frozen=True)
class Balance:
    """Account balance change carried by an account amend."""

    prev_state: RecordID
    account_state: RecordID
    balance: str


@dataclass(frozen=True)
class Deposit:
    """Deposit created by a deposit.migration call."""

    eth_hash: str
    ref: Reference
    member: Reference
    timestamp: int
    hold_release_date: int
    amount: str
    balance: str
    deposit_state: RecordID
    vesting: int
    vesting_step: int


@dataclass(frozen=True)
class DepositUpdate:
    """New deposit state carried by a deposit amend."""

    id: RecordID
    hold_release_date: int
    amount: str
    balance: str
    prev_state: RecordID
    tx_hash: str


@dataclass(frozen=True)
class DepositTransfer:
    """Value movement initiated by a member API call.

    Attributes:
        kind: ``standard`` between members, ``withdraw`` from a deposit to
            its owner, or ``migration`` from the migration admin to a member.
    """

    tx_id: RecordID
    amount: str
    fee: str
    from_member: Reference
    to_member: Reference
    pulse_number: int
    timestamp: int
    eth_hash: str = ""
    kind: str = TRANSFER_KIND_STANDARD


@dataclass(frozen=True)
class Group:
    """Group created by a group.create call."""

    ref: Reference
    title: str
    goal: str
    purpose: str
    chairman: str
    membership: tuple[str, ...]
    status: str


@dataclass(frozen=True)
class MigrationAddress:
    """Migration address added to the free address pool."""

    addr: str
    pulse_number: int
    wasted: bool = False


@dataclass(frozen=True)
class Wasting:
    """Migration address taken from the free address pool."""

    addr: str
