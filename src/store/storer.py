"""Transactional batch persister."""

from __future__ import annotations

import time
from typing import Callable

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.errors import ObserverError, ObserverStartupError, ObserverStoreError
from core.logging_config import get_logger
from core.retry import retry_until_success
from core.types import Cursor
from pipeline.batch import Batch
from store.schema import create_schema
from store.storages import (
    DepositStorage,
    GroupStorage,
    MemberStorage,
    MigrationAddressStorage,
    PulseStorage,
    RecordStorage,
    TransferStorage,
)

_LOGGER = get_logger(__name__)


def open_engine(
    database_url: str,
    attempts: int = 1,
    interval: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
) -> Engine:
    """Create an engine for the projection database and ensure its tables exist.

    Args:
        database_url: SQLAlchemy database URL.
        attempts: Maximum number of schema creation attempts.
        interval: Seconds between failed attempts.
        sleep: Sleep function, injectable for tests.

    Raises:
        ObserverStoreError: If the URL cannot be used to build an engine.
        ObserverStartupError: If the database stays unreachable after all attempts.
    """
    try:
        engine = create_engine(database_url)
    except SQLAlchemyError as error:
        raise ObserverStoreError(f"Cannot open database '{database_url}': {error}") from error

    def ensure_schema() -> None:
        try:
            create_schema(engine)
        except SQLAlchemyError as error:
            raise ObserverStoreError(
                f"Cannot create tables in '{database_url}': {error}"
            ) from error

    try:
        retry_until_success(
            ensure_schema,
            attempts=attempts,
            interval=interval,
            description="create_schema",
            sleep=sleep,
        )
    except ObserverError as error:
        engine.dispose()
        raise ObserverStartupError(
            f"Cannot prepare the database after {attempts} attempts: {error}"
        ) from error
    return engine


class Storer:
    """Persists each batch atomically.

    Pulse, raw records and every entity of a batch are written in one
    transaction; any failure rolls the whole batch back.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._pulses = PulseStorage()
        self._records = RecordStorage()
        self._members = MemberStorage()
        self._deposits = DepositStorage()
        self._transfers = TransferStorage()
        self._groups = GroupStorage()
        self._migration_addresses = MigrationAddressStorage()

    def store(self, batch: Batch) -> None:
        """Write one batch.

        Entities are inserted before updates are applied so a state change
        observed in the same pulse as the creation still lands.

        Raises:
            ObserverStoreError: If the transaction fails; nothing is written.
        """
        try:
            with self._engine.begin() as connection:
                if batch.pulse is not None:
                    self._pulses.insert(connection, batch.pulse)
                self._records.insert(connection, batch.records)
                self._transfers.insert(connection, batch.transfers)
                self._members.insert(connection, batch.members)
                self._deposits.insert(connection, batch.deposits)
                self._groups.insert(connection, batch.groups)
                self._migration_addresses.insert(connection, batch.migration_addresses)
                missed_balances = self._members.update_balances(connection, batch.balances)
                missed_deposits = self._deposits.update(connection, batch.deposit_updates)
                self._migration_addresses.mark_wasted(connection, batch.wastings)
        except (SQLAlchemyError, OverflowError) as error:
            _LOGGER.error(
                "batch_store_failed",
                pulse=batch.pulse_number,
                error=str(error),
            )
            raise ObserverStoreError(f"Failed to store batch: {error}") from error
        _LOGGER.info(
            "batch_stored",
            pulse=batch.pulse_number,
            records=len(batch.records),
            entities=batch.entity_count(),
            unmatched_balances=missed_balances,
            unmatched_deposit_updates=missed_deposits,
        )

    def load_cursor(self) -> Cursor:
        """Read the resumption cursor from stored pulses and records.

        Raises:
            ObserverStoreError: If the database cannot be read.
        """
        try:
            with self._engine.connect() as connection:
                last_pulse = self._pulses.last(connection)
                if last_pulse is None:
                    return Cursor.genesis()
                sequence = self._records.last_sequence(connection, last_pulse)
        except SQLAlchemyError as error:
            raise ObserverStoreError(f"Cannot read stored progress: {error}") from error
        return Cursor(pulse=last_pulse, sequence=sequence, exhausted=False)
