"""Migration address pool collector."""

from __future__ import annotations

from typing import Any

from collecting.contract_state import log_dropped
from collecting.coupled import CoupledResult, ResultCollector
from core.config import PrototypeRefs
from core.constants import ADD_MIGRATION_ADDRESSES_CALL_SITE
from core.errors import ObserverDecodeError
from core.types import MigrationAddress
from ledger.classify import activate_of, call_site_in, is_success_result, member_call
from ledger.codec import decode_memory
from ledger.records import Record, as_activate


class MigrationAddressCollector:
    """Tracks addresses entering the free migration address pool.

    Addresses arrive either through a migration.addAddresses call or as the
    initial free list of a migration shard.
    """

    def __init__(self, prototypes: PrototypeRefs) -> None:
        self._collector = ResultCollector(
            call_site_in([ADD_MIGRATION_ADDRESSES_CALL_SITE]),
            is_success_result,
        )
        self._is_shard_activate = activate_of(prototypes.migration_shard)

    def collect(self, record: Record | None) -> list[MigrationAddress]:
        """Feed one record; return the addresses it adds to the pool."""
        if record is None:
            return []
        try:
            if self._is_shard_activate(record):
                return build_shard_addresses(record)
            coupled = self._collector.collect(record)
            if coupled is None:
                return []
            return build_added_addresses(coupled)
        except ObserverDecodeError as error:
            log_dropped("migration_address", record, error)
            return []

    def evict(self, before_pulse: int) -> int:
        """Drop pending correlations older than the given pulse; return how many."""
        return self._collector.evict(before_pulse)


def build_added_addresses(coupled: CoupledResult) -> list[MigrationAddress]:
    call = member_call(coupled.request)
    if call is None:
        raise ObserverDecodeError(f"Request {coupled.request.id} is not a member call.")
    addresses = _address_list(call.call_params.get("migrationAddresses"))
    pulse_number = coupled.request.pulse_number
    return [MigrationAddress(addr=addr, pulse_number=pulse_number) for addr in addresses]


def build_shard_addresses(record: Record) -> list[MigrationAddress]:
    activate = as_activate(record)
    if activate is None or not activate.memory:
        return []
    state = decode_memory(activate.memory, "migration shard memory")
    addresses = _address_list(state.get("freeMigrationAddresses"))
    return [MigrationAddress(addr=addr, pulse_number=record.pulse_number) for addr in addresses]


def _address_list(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ObserverDecodeError("Migration addresses are not a list.")
    return [str(addr) for addr in value if addr]
