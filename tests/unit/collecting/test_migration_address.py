"""Unit tests for migration address collection."""

from __future__ import annotations

from collecting.migration_address import MigrationAddressCollector
from tests import record_factory as factory


def test_collector_reads_added_addresses() -> None:
    """A successful addAddresses call should add each listed address."""
    collector = MigrationAddressCollector(factory.PROTOTYPES)
    call = factory.member_call(
        "migration.addAddresses", {"migrationAddresses": ["0x1", "0x2"]}
    )

    first = collector.collect(call)
    addresses = collector.collect(factory.result_of(call, None))

    assert first == []
    assert [address.addr for address in addresses] == ["0x1", "0x2"]
    assert all(address.pulse_number == call.pulse_number for address in addresses)
    assert not any(address.wasted for address in addresses)


def test_collector_reads_shard_free_addresses() -> None:
    """A migration shard activation should add its initial free addresses."""
    collector = MigrationAddressCollector(factory.PROTOTYPES)
    shard = factory.PROTOTYPES.migration_shard
    request = factory.constructor(shard, reason=None)
    activate = factory.activate_of(request, shard, {"freeMigrationAddresses": ["0xa", "0xb"]})

    addresses = collector.collect(activate)

    assert [address.addr for address in addresses] == ["0xa", "0xb"]


def test_collector_drops_malformed_address_list() -> None:
    """A non-list address parameter should be dropped."""
    collector = MigrationAddressCollector(factory.PROTOTYPES)
    call = factory.member_call("migration.addAddresses", {"migrationAddresses": "0x1"})

    collector.collect(call)

    assert collector.collect(factory.result_of(call, None)) == []
