"""Migration address wasting collector."""

from __future__ import annotations

from collecting.contract_state import log_dropped, returned_value
from collecting.coupled import CoupledResult, ResultCollector
from core.constants import GET_FREE_MIGRATION_ADDRESS_METHOD
from core.errors import ObserverDecodeError
from core.types import Wasting
from ledger.classify import incoming_method, is_success_result
from ledger.records import Record


class WastingCollector:
    """Detects migration addresses handed out by the migration shard."""

    def __init__(self) -> None:
        self._collector = ResultCollector(
            incoming_method(GET_FREE_MIGRATION_ADDRESS_METHOD),
            is_success_result,
        )

    def collect(self, record: Record | None) -> Wasting | None:
        """Feed one record; return the address it takes from the pool, if any."""
        if record is None:
            return None
        coupled = self._collector.collect(record)
        if coupled is None:
            return None
        try:
            return build_wasting(coupled)
        except ObserverDecodeError as error:
            log_dropped("wasting", record, error)
            return None

    def evict(self, before_pulse: int) -> int:
        """Drop pending correlations older than the given pulse; return how many."""
        return self._collector.evict(before_pulse)


def build_wasting(coupled: CoupledResult) -> Wasting:
    address = returned_value(coupled.result)
    if not isinstance(address, str) or not address:
        raise ObserverDecodeError(f"Invalid migration address {address!r}.")
    return Wasting(addr=address)
