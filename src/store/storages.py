"""Table-level storage operations.

Each storage works on a caller-supplied connection so the storer can run
a whole batch inside one transaction. Inserts are idempotent: rows whose
primary key already exists are skipped.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from sqlalchemy import Table, func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Connection

from core.errors import ObserverConfigError
from core.logging_config import get_logger
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
from store.schema import (
    DEPOSITS,
    GROUPS,
    MEMBERS,
    MIGRATION_ADDRESSES,
    PULSES,
    RECORDS,
    TRANSFERS,
)

_LOGGER = get_logger(__name__)

_INSERT_BUILDERS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def insert_ignoring_duplicates(
    connection: Connection,
    table: Table,
    rows: Sequence[Mapping[str, Any]],
) -> None:
    """Insert rows, skipping those whose primary key is already stored.

    Raises:
        ObserverConfigError: If the database dialect has no conflict clause.
    """
    if not rows:
        return
    dialect = connection.dialect.name
    builder = _INSERT_BUILDERS.get(dialect)
    if builder is None:
        raise ObserverConfigError(
            f"Unsupported database dialect '{dialect}'. Use sqlite or postgresql."
        )
    statement = builder(table).on_conflict_do_nothing()
    connection.execute(statement, [dict(row) for row in rows])


class PulseStorage:
    def last(self, connection: Connection) -> int | None:
        """Return the newest stored pulse number, None for an empty store."""
        return connection.execute(select(func.max(PULSES.c.pulse_number))).scalar()

    def insert(self, connection: Connection, pulse: Pulse) -> None:
        insert_ignoring_duplicates(
            connection,
            PULSES,
            [
                {
                    "pulse_number": pulse.number,
                    "entropy": pulse.entropy,
                    "timestamp": pulse.timestamp,
                }
            ],
        )


class RecordStorage:
    def last_sequence(self, connection: Connection, pulse_number: int) -> int:
        """Return the highest stored sequence of a pulse, 0 when none is stored."""
        statement = select(func.max(RECORDS.c.sequence)).where(
            RECORDS.c.pulse_number == pulse_number
        )
        return connection.execute(statement).scalar() or 0

    def insert(self, connection: Connection, records: Iterable[Record]) -> None:
        rows = [
            {
                "record_id": str(record.id),
                "pulse_number": record.pulse_number,
                "sequence": record.sequence,
                "kind": type(record.payload).__name__.lower(),
            }
            for record in records
        ]
        insert_ignoring_duplicates(connection, RECORDS, rows)


class MemberStorage:
    def insert(self, connection: Connection, members: Iterable[Member]) -> None:
        rows = [
            {
                "member_ref": member.member_ref.value,
                "balance": member.balance,
                "migration_address": member.migration_address,
                "account_state": str(member.account_state),
                "status": member.status,
            }
            for member in members
        ]
        insert_ignoring_duplicates(connection, MEMBERS, rows)

    def update_balances(self, connection: Connection, balances: Iterable[Balance]) -> int:
        """Apply balance changes in order; return how many matched no member.

        A change applies only to the member whose account is still in the
        change's previous state, so replays never move a balance backwards.
        """
        missed = 0
        for balance in balances:
            statement = (
                update(MEMBERS)
                .where(MEMBERS.c.account_state == str(balance.prev_state))
                .values(balance=balance.balance, account_state=str(balance.account_state))
            )
            if connection.execute(statement).rowcount == 0:
                missed += 1
                _LOGGER.debug(
                    "balance_update_unmatched",
                    prev_state=str(balance.prev_state),
                    account_state=str(balance.account_state),
                )
        return missed


class DepositStorage:
    def insert(self, connection: Connection, deposits: Iterable[Deposit]) -> None:
        rows = [
            {
                "deposit_ref": deposit.ref.value,
                "member_ref": deposit.member.value,
                "eth_hash": deposit.eth_hash,
                "transfer_date": deposit.timestamp,
                "hold_release_date": deposit.hold_release_date,
                "amount": deposit.amount,
                "balance": deposit.balance,
                "deposit_state": str(deposit.deposit_state),
                "vesting": deposit.vesting,
                "vesting_step": deposit.vesting_step,
            }
            for deposit in deposits
        ]
        insert_ignoring_duplicates(connection, DEPOSITS, rows)

    def update(self, connection: Connection, updates: Iterable[DepositUpdate]) -> int:
        """Apply deposit state changes in order; return how many matched no deposit."""
        missed = 0
        for deposit_update in updates:
            statement = (
                update(DEPOSITS)
                .where(DEPOSITS.c.deposit_state == str(deposit_update.prev_state))
                .values(
                    hold_release_date=deposit_update.hold_release_date,
                    amount=deposit_update.amount,
                    balance=deposit_update.balance,
                    deposit_state=str(deposit_update.id),
                )
            )
            if connection.execute(statement).rowcount == 0:
                missed += 1
                _LOGGER.debug("deposit_update_unmatched", prev_state=str(deposit_update.prev_state))
        return missed


class TransferStorage:
    def insert(self, connection: Connection, transfers: Iterable[DepositTransfer]) -> None:
        rows = [
            {
                "tx_id": str(transfer.tx_id),
                "amount": transfer.amount,
                "fee": transfer.fee,
                "member_from_ref": transfer.from_member.value,
                "member_to_ref": transfer.to_member.value,
                "pulse_number": transfer.pulse_number,
                "timestamp": transfer.timestamp,
                "eth_hash": transfer.eth_hash,
                "kind": transfer.kind,
            }
            for transfer in transfers
        ]
        insert_ignoring_duplicates(connection, TRANSFERS, rows)


class GroupStorage:
    def insert(self, connection: Connection, groups: Iterable[Group]) -> None:
        rows = [
            {
                "group_ref": group.ref.value,
                "title": group.title,
                "goal": group.goal,
                "purpose": group.purpose,
                "chairman": group.chairman,
                "membership": list(group.membership),
                "status": group.status,
            }
            for group in groups
        ]
        insert_ignoring_duplicates(connection, GROUPS, rows)


class MigrationAddressStorage:
    def insert(self, connection: Connection, addresses: Iterable[MigrationAddress]) -> None:
        rows = [
            {"addr": address.addr, "pulse_number": address.pulse_number, "wasted": address.wasted}
            for address in addresses
        ]
        insert_ignoring_duplicates(connection, MIGRATION_ADDRESSES, rows)

    def mark_wasted(self, connection: Connection, wastings: Iterable[Wasting]) -> None:
        for wasting in wastings:
            connection.execute(
                update(MIGRATION_ADDRESSES)
                .where(MIGRATION_ADDRESSES.c.addr == wasting.addr)
                .values(wasted=True)
            )
