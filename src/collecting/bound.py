"""Create-and-activate correlation.

A contract call that creates an object spans three hops: the API call
request and its result, and the constructor request (caused by the call)
and the Activate it produced. BoundCollector joins the two single-hop
pairs on "constructor reason == call id".
"""

from __future__ import annotations

from dataclasses import dataclass

from collecting.chain import ChainCollector, RelationDesc
from collecting.coupled import ActivateCollector, CoupledActivate, CoupledResult, ResultCollector
from core.types import RecordID
from ledger.classify import Predicate, request_reason
from ledger.records import Record


@dataclass(frozen=True)
class Couple:
    """Activate record and the result record of the call that caused it."""

    activate: Record
    result: Record


def is_coupled_result(item: object) -> bool:
    """Whether the item is a request paired with its result."""
    return isinstance(item, CoupledResult)


def is_coupled_activate(item: object) -> bool:
    """Whether the item is a constructor paired with its Activate."""
    return isinstance(item, CoupledActivate)


def coupled_result_origin(item: object) -> RecordID | None:
    """Origin of a coupled result: the id of the call it answers."""
    if not isinstance(item, CoupledResult):
        return None
    return item.request.id


def coupled_activate_origin(item: object) -> RecordID | None:
    """Origin of a coupled Activate: the call that caused its constructor."""
    if not isinstance(item, CoupledActivate):
        return None
    return request_reason(item.request)


class BoundCollector:
    """Emits a Couple once call, result, constructor and Activate are all seen."""

    def __init__(
        self,
        call_request: Predicate,
        proper_result: Predicate,
        constructor_request: Predicate,
        proper_activate: Predicate,
    ) -> None:
        self._results = ResultCollector(call_request, proper_result)
        self._activates = ActivateCollector(constructor_request, proper_activate)
        self._chains: ChainCollector[CoupledResult, CoupledActivate] = ChainCollector(
            RelationDesc(
                is_member=is_coupled_result,
                origin_of=coupled_result_origin,
                is_proper=is_coupled_result,
            ),
            RelationDesc(
                is_member=is_coupled_activate,
                origin_of=coupled_activate_origin,
                is_proper=is_coupled_activate,
            ),
        )

    def collect(self, record: Record | None) -> Couple | None:
        """Feed one record; return the Couple it completes, if any."""
        if record is None:
            return None
        coupled_result = self._results.collect(record)
        coupled_activate = self._activates.collect(record)
        chain = None
        if coupled_activate is not None:
            chain = self._chains.collect(coupled_activate)
        elif coupled_result is not None:
            chain = self._chains.collect(coupled_result)
        if chain is None:
            return None
        return Couple(activate=chain.child.activate, result=chain.parent.result)

    def evict(self, before_pulse: int) -> int:
        """Drop pending correlations older than the given pulse; return how many."""
        return (
            self._results.evict(before_pulse)
            + self._activates.evict(before_pulse)
            + self._chains.evict(before_pulse)
        )
