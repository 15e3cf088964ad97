"""Deposit migration collector."""

from __future__ import annotations

from typing import Mapping

from collecting.bound import BoundCollector, Couple
from collecting.contract_state import (
    hold_release_timestamp,
    int_field,
    log_dropped,
    record_timestamp,
    returned_value,
)
from core.config import PrototypeRefs
from core.constants import (
    DEPOSIT_MIGRATION_CALL_SITE,
    GENESIS_PULSE_NUMBER,
    MIGRATION_ADMIN_MEMBER_NAME,
    MIGRATION_DEPOSIT_NAME,
)
from core.errors import ObserverDecodeError
from core.types import Deposit, Reference
from ledger.classify import activate_of, call_site_in, constructor_of, is_success_result
from ledger.codec import decode_memory, parse_reference
from ledger.records import Record, as_activate


class DepositCollector:
    """Builds a Deposit from a deposit.migration call and the deposit it activated.

    The migration deposit activated at genesis belongs to the migration
    admin member and is emitted as soon as its Activate is seen.
    """

    def __init__(self, prototypes: PrototypeRefs) -> None:
        self._collector = BoundCollector(
            call_site_in([DEPOSIT_MIGRATION_CALL_SITE]),
            is_success_result,
            constructor_of(prototypes.deposit),
            activate_of(prototypes.deposit),
        )
        self._is_deposit_activate = activate_of(prototypes.deposit)

    def collect(self, record: Record | None) -> Deposit | None:
        """Feed one record; return the Deposit it completes, if any."""
        if record is None:
            return None
        try:
            if record.pulse_number == GENESIS_PULSE_NUMBER and self._is_deposit_activate(record):
                return build_genesis_deposit(record)
            couple = self._collector.collect(record)
            if couple is None:
                return None
            return build_deposit(couple)
        except ObserverDecodeError as error:
            log_dropped("deposit", record, error)
            return None

    def evict(self, before_pulse: int) -> int:
        """Drop pending correlations older than the given pulse; return how many."""
        return self._collector.evict(before_pulse)


def build_deposit(couple: Couple) -> Deposit:
    """Map a matched migration result and deposit Activate to a Deposit.

    The member reference comes from the call result; every other field is
    read from the deposit memory at activation.

    Raises:
        ObserverDecodeError: If the response or deposit memory is malformed.
    """
    activate = as_activate(couple.activate)
    if activate is None:
        raise ObserverDecodeError("Deposit couple does not carry an Activate record.")
    response = returned_value(couple.result)
    if isinstance(response, Mapping):
        response = response.get("reference")
    member = parse_reference(response)
    state = decode_memory(activate.memory, "deposit memory")
    return Deposit(
        eth_hash=str(state.get("txHash", "")).lower(),
        ref=Reference.of(activate.request),
        member=member,
        timestamp=record_timestamp(couple.activate.pulse_number),
        hold_release_date=hold_release_timestamp(state),
        amount=str(state.get("amount", "0")),
        balance=str(state.get("balance", "0")),
        deposit_state=couple.activate.id,
        vesting=int_field(state, "vesting"),
        vesting_step=int_field(state, "vestingStep"),
    )


def build_genesis_deposit(record: Record) -> Deposit:
    """Map the deposit activated at genesis to the migration admin's Deposit.

    Raises:
        ObserverDecodeError: If the deposit memory is malformed.
    """
    activate = as_activate(record)
    if activate is None:
        raise ObserverDecodeError(f"Record {record.id} is not an Activate.")
    state = decode_memory(activate.memory, "deposit memory")
    return Deposit(
        eth_hash=str(state.get("txHash", "")).lower(),
        ref=Reference.genesis(MIGRATION_DEPOSIT_NAME),
        member=Reference.genesis(MIGRATION_ADMIN_MEMBER_NAME),
        timestamp=record_timestamp(record.pulse_number),
        hold_release_date=0,
        amount=str(state.get("amount", "0")),
        balance=str(state.get("balance", "0")),
        deposit_state=record.id,
        vesting=int_field(state, "vesting"),
        vesting_step=int_field(state, "vestingStep"),
    )
