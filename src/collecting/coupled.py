"""Single-hop record collectors.

ResultCollector pairs a request with its result; ActivateCollector pairs
a constructor request with the Activate it produced. Both are thin typed
wrappers over ChainCollector.
"""

from __future__ import annotations

from dataclasses import dataclass

from collecting.chain import ChainCollector, RelationDesc
from ledger.classify import (
    Predicate,
    activate_request,
    is_activate,
    is_incoming,
    is_request,
    is_result,
    request_id,
    result_request,
)
from ledger.records import Record


@dataclass(frozen=True)
class CoupledResult:
    """Request record and the result record answering it."""

    request: Record
    result: Record


@dataclass(frozen=True)
class CoupledActivate:
    """Constructor request record and the object it activated."""

    request: Record
    activate: Record


class ResultCollector:
    """Pairs requests satisfying one predicate with results satisfying another."""

    def __init__(self, proper_request: Predicate, proper_result: Predicate) -> None:
        self._chains: ChainCollector[Record, Record] = ChainCollector(
            RelationDesc(is_member=is_request, origin_of=request_id, is_proper=proper_request),
            RelationDesc(is_member=is_result, origin_of=result_request, is_proper=proper_result),
        )

    def collect(self, record: Record | None) -> CoupledResult | None:
        """Feed one record; return the request and result it pairs, if any."""
        chain = self._chains.collect(record)
        if chain is None:
            return None
        return CoupledResult(request=chain.parent, result=chain.child)

    def evict(self, before_pulse: int) -> int:
        """Drop pending correlations older than the given pulse; return how many."""
        return self._chains.evict(before_pulse)


class ActivateCollector:
    """Pairs constructor requests with the Activates they produced."""

    def __init__(self, proper_request: Predicate, proper_activate: Predicate) -> None:
        self._chains: ChainCollector[Record, Record] = ChainCollector(
            RelationDesc(is_member=is_incoming, origin_of=request_id, is_proper=proper_request),
            RelationDesc(
                is_member=is_activate, origin_of=activate_request, is_proper=proper_activate
            ),
        )

    def collect(self, record: Record | None) -> CoupledActivate | None:
        """Feed one record; return the constructor and Activate it pairs, if any."""
        chain = self._chains.collect(record)
        if chain is None:
            return None
        return CoupledActivate(request=chain.parent, activate=chain.child)

    def evict(self, before_pulse: int) -> int:
        """Drop pending correlations older than the given pulse; return how many."""
        return self._chains.evict(before_pulse)
