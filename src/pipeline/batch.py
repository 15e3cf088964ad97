"""Batch containers passed between pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field

from core.types import (
    Balance,
    Deposit,
    DepositTransfer,
    DepositUpdate,
    Group,
    Member,
    MigrationAddress,
    Pulse,
    Wasting,
)
from ledger.records import Record


@dataclass(frozen=True)
class RawBatch:
    """Records of one pulse as received from the export stream.

    Attributes:
        pulse_number: Pulse the records belong to.
        pulse: Pulse metadata, None when resuming a pulse already stored.
        records: Records in receipt order.
    """

    pulse_number: int
    pulse: Pulse | None
    records: list[Record] = field(default_factory=list)


@dataclass
class Batch:
    """Everything one cycle persists in a single transaction.

    Attributes:
        pulse_number: Pulse the batch was collected from.
        pulse: Pulse metadata to store, None when the pulse is already stored.
    """

    pulse_number: int
    pulse: Pulse | None
    records: list[Record] = field(default_factory=list)
    transfers: list[DepositTransfer] = field(default_factory=list)
    members: list[Member] = field(default_factory=list)
    deposits: list[Deposit] = field(default_factory=list)
    deposit_updates: list[DepositUpdate] = field(default_factory=list)
    groups: list[Group] = field(default_factory=list)
    migration_addresses: list[MigrationAddress] = field(default_factory=list)
    wastings: list[Wasting] = field(default_factory=list)
    balances: list[Balance] = field(default_factory=list)

    def entity_count(self) -> int:
        return (
            len(self.transfers)
            + len(self.members)
            + len(self.deposits)
            + len(self.deposit_updates)
            + len(self.groups)
            + len(self.migration_addresses)
            + len(self.wastings)
            + len(self.balances)
        )
