"""Deposit state change collector."""

from __future__ import annotations

from collecting.contract_state import hold_release_timestamp, log_dropped
from core.config import PrototypeRefs
from core.errors import ObserverDecodeError
from core.types import DepositUpdate
from ledger.classify import amend_of
from ledger.codec import decode_memory
from ledger.records import Record, as_amend


class DepositUpdateCollector:
    """Turns every deposit Amend into a DepositUpdate.

    The amend carries the full new deposit state, so no correlation with
    other records is needed.
    """

    def __init__(self, prototypes: PrototypeRefs) -> None:
        self._is_deposit_amend = amend_of(prototypes.deposit)

    def collect(self, record: Record | None) -> DepositUpdate | None:
        """Return the update a deposit Amend carries, if any."""
        if record is None or not self._is_deposit_amend(record):
            return None
        try:
            return build_deposit_update(record)
        except ObserverDecodeError as error:
            log_dropped("deposit_update", record, error)
            return None

    def evict(self, before_pulse: int) -> int:
        """Nothing is cached, so nothing is dropped."""
        return 0


def build_deposit_update(record: Record) -> DepositUpdate:
    amend = as_amend(record)
    if amend is None:
        raise ObserverDecodeError(f"Record {record.id} is not an Amend.")
    state = decode_memory(amend.memory, "deposit memory")
    return DepositUpdate(
        id=record.id,
        hold_release_date=hold_release_timestamp(state),
        amount=str(state.get("amount", "0")),
        balance=str(state.get("balance", "0")),
        prev_state=amend.prev_state,
        tx_hash=str(state.get("txHash", "")).lower(),
    )
