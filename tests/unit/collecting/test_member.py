"""Unit tests for member collection."""

from __future__ import annotations

from collecting.member import MemberCollector
from core.constants import GENESIS_PULSE_NUMBER
from core.types import Reference
from tests import record_factory as factory

_ACCOUNT = factory.PROTOTYPES.account


def _scenario(member_ref: str, memory: dict | None) -> list:
    outgoing = factory.outgoing()
    call = factory.member_call("member.create", reason=outgoing.id)
    new_request = factory.constructor(_ACCOUNT, reason=call.id)
    return [
        outgoing,
        factory.result_of(outgoing, {}),
        call,
        factory.result_of(call, {"reference": member_ref, "migrationAddress": "0xabc"}),
        new_request,
        factory.result_of(new_request, None),
        factory.activate_of(new_request, _ACCOUNT, memory),
    ]


def test_member_collector_builds_member() -> None:
    """A complete member.create flow should yield exactly one member."""
    collector = MemberCollector(factory.PROTOTYPES)
    member_ref = factory.new_reference()
    records = _scenario(member_ref, {"balance": "1000"})

    members = [member for member in map(collector.collect, records) if member is not None]

    assert len(members) == 1
    member = members[0]
    assert member.member_ref == Reference(member_ref)
    assert member.balance == "1000"
    assert member.migration_address == "0xabc"
    assert member.account_state == records[-1].id
    assert member.status == "SUCCESS"


def test_member_collector_handles_reversed_order() -> None:
    """Records arriving newest-first should still yield the member."""
    collector = MemberCollector(factory.PROTOTYPES)
    records = _scenario(factory.new_reference(), {"balance": "5"})

    members = [member for member in map(collector.collect, reversed(records)) if member]

    assert [member.balance for member in members] == ["5"]


def test_member_collector_defaults_missing_memory_to_zero() -> None:
    """An Activate without memory should produce a zero balance."""
    collector = MemberCollector(factory.PROTOTYPES)
    records = _scenario(factory.new_reference(), None)

    members = [member for member in map(collector.collect, records) if member is not None]

    assert members[0].balance == "0"


def test_member_collector_drops_invalid_reference() -> None:
    """An unparseable reference in the response should drop the member."""
    collector = MemberCollector(factory.PROTOTYPES)
    records = _scenario("not base58 0OIl", {"balance": "1"})

    members = [member for member in map(collector.collect, records) if member is not None]

    assert members == []


def test_member_collector_emits_internal_member_for_genesis_account() -> None:
    """An account activated at genesis should become an internal member at once."""
    collector = MemberCollector(factory.PROTOTYPES)
    genesis_request = factory.constructor(_ACCOUNT, reason=None, pulse=GENESIS_PULSE_NUMBER)
    activate = factory.activate_of(genesis_request, _ACCOUNT, {"balance": "900"})

    member = collector.collect(activate)

    assert member is not None
    assert member.status == "INTERNAL"
    assert member.balance == "900"
    assert member.account_state == activate.id
    assert member.member_ref == Reference.of(activate.id)


def test_member_collector_waits_for_call_outside_genesis() -> None:
    """An account Activate after genesis alone should not yield a member."""
    collector = MemberCollector(factory.PROTOTYPES)
    new_request = factory.constructor(_ACCOUNT, reason=factory.new_id())

    assert collector.collect(factory.activate_of(new_request, _ACCOUNT, {"balance": "1"})) is None
