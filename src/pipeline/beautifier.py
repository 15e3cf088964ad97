"""Per-batch orchestration of domain collectors.

The beautifier feeds every raw record of a batch to every domain collector
and gathers the entities they complete. Collector state survives across
batches, so a chain may be completed by records of a later pulse.
"""

from __future__ import annotations

from typing import Any, Protocol

from collecting.balance import BalanceCollector
from collecting.deposit import DepositCollector
from collecting.deposit_update import DepositUpdateCollector
from collecting.group import GroupCollector
from collecting.member import MemberCollector
from collecting.migration_address import MigrationAddressCollector
from collecting.migration_transfer import MigrationTransferCollector
from collecting.transfer import TransferCollector
from collecting.wasting import WastingCollector
from collecting.withdraw_transfer import WithdrawTransferCollector
from core.config import PrototypeRefs
from core.logging_config import get_logger
from ledger.records import Record
from pipeline.batch import Batch, RawBatch

_LOGGER = get_logger(__name__)


class Collector(Protocol):
    def collect(self, record: Record | None) -> Any: ...

    def evict(self, before_pulse: int) -> int: ...


class Beautifier:
    """Turns raw record batches into entity batches.

    Args:
        prototypes: Contract prototypes the collectors match against.
        cache_pulse_horizon: Pending correlation entries older than this
            many pulses are dropped after each batch; 0 keeps them forever.
    """

    def __init__(self, prototypes: PrototypeRefs, cache_pulse_horizon: int = 0) -> None:
        self._horizon = cache_pulse_horizon
        self._routes: list[tuple[str, Collector]] = [
            ("transfers", TransferCollector()),
            ("transfers", WithdrawTransferCollector()),
            ("transfers", MigrationTransferCollector(prototypes)),
            ("members", MemberCollector(prototypes)),
            ("deposits", DepositCollector(prototypes)),
            ("deposit_updates", DepositUpdateCollector(prototypes)),
            ("groups", GroupCollector(prototypes)),
            ("migration_addresses", MigrationAddressCollector(prototypes)),
            ("wastings", WastingCollector()),
            ("balances", BalanceCollector(prototypes)),
        ]

    def process(self, raw: RawBatch) -> Batch:
        """Run all collectors over a raw batch in receipt order."""
        batch = Batch(pulse_number=raw.pulse_number, pulse=raw.pulse, records=list(raw.records))
        for record in raw.records:
            self._collect_record(record, batch)
        self._evict(raw.pulse_number)
        _LOGGER.info(
            "batch_collected",
            pulse=raw.pulse_number,
            records=len(raw.records),
            transfers=len(batch.transfers),
            members=len(batch.members),
            deposits=len(batch.deposits),
            deposit_updates=len(batch.deposit_updates),
            groups=len(batch.groups),
            migration_addresses=len(batch.migration_addresses),
            wastings=len(batch.wastings),
            balances=len(batch.balances),
        )
        return batch

    def _collect_record(self, record: Record, batch: Batch) -> None:
        for sink_name, collector in self._routes:
            try:
                produced = collector.collect(record)
            except Exception as error:
                _LOGGER.error(
                    "record_collect_failed",
                    collector=sink_name,
                    record_id=str(record.id),
                    pulse=record.pulse_number,
                    error=str(error),
                    error_type=type(error).__name__,
                )
                continue
            if produced is None:
                continue
            sink: list[Any] = getattr(batch, sink_name)
            if isinstance(produced, list):
                sink.extend(produced)
            else:
                sink.append(produced)

    def _evict(self, pulse_number: int) -> None:
        if self._horizon <= 0:
            return
        before_pulse = pulse_number - self._horizon
        dropped = sum(collector.evict(before_pulse) for _, collector in self._routes)
        if dropped:
            _LOGGER.warning("collector_cache_evicted", before_pulse=before_pulse, entries=dropped)
