"""Unit tests for single-hop and bound collectors."""

from __future__ import annotations

import itertools

from collecting.bound import BoundCollector
from collecting.coupled import ResultCollector
from ledger.classify import activate_of, call_site_in, constructor_of, is_success_result
from tests import record_factory as factory

_ACCOUNT = factory.PROTOTYPES.account


def _member_create_records() -> list:
    call = factory.member_call("member.create")
    call_result = factory.result_of(call, {"reference": factory.new_reference()})
    new_request = factory.constructor(_ACCOUNT, reason=call.id)
    new_result = factory.result_of(new_request, {})
    activate = factory.activate_of(new_request, _ACCOUNT, {"balance": "0"})
    return [call, call_result, new_request, new_result, activate]


def _bound() -> BoundCollector:
    return BoundCollector(
        call_site_in(["member.create"]),
        is_success_result,
        constructor_of(_ACCOUNT),
        activate_of(_ACCOUNT),
    )


def test_result_collector_pairs_success_result() -> None:
    """A matching call and successful result should couple."""
    collector = ResultCollector(call_site_in(["member.transfer"]), is_success_result)
    call = factory.member_call("member.transfer")
    result = factory.result_of(call, {"fee": "1"})

    assert collector.collect(result) is None
    coupled = collector.collect(call)

    assert coupled is not None
    assert coupled.request == call and coupled.result == result


def test_result_collector_drops_failed_result() -> None:
    """A failed call result should not couple."""
    collector = ResultCollector(call_site_in(["member.transfer"]), is_success_result)
    call = factory.member_call("member.transfer")

    collector.collect(call)
    coupled = collector.collect(factory.result_of(call, None, error="insufficient balance"))

    assert coupled is None


def test_bound_collector_emits_once_for_any_order() -> None:
    """Every arrival order of a create flow should emit exactly one couple."""
    records = _member_create_records()
    _, call_result, _, _, activate = records

    for order in itertools.permutations(records):
        collector = _bound()
        couples = [couple for couple in map(collector.collect, order) if couple is not None]

        assert len(couples) == 1
        assert couples[0].activate == activate and couples[0].result == call_result


def test_bound_collector_ignores_constructor_of_other_call() -> None:
    """An Activate caused by an unrelated call should not bind."""
    collector = _bound()
    call = factory.member_call("member.create")
    other_call = factory.member_call("member.create")
    new_request = factory.constructor(_ACCOUNT, reason=other_call.id)
    records = [
        call,
        factory.result_of(call, {"reference": factory.new_reference()}),
        new_request,
        factory.activate_of(new_request, _ACCOUNT, {"balance": "0"}),
    ]

    couples = [couple for couple in map(collector.collect, records) if couple is not None]

    assert couples == []
