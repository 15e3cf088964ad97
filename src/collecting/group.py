"""Group creation collector.

A group.create member call makes the user contract issue a nested
``CreateGroup`` call, which in turn runs the group constructor. The
collector therefore correlates a chain of chains:

* half chain: ``CreateGroup`` request paired with the coupled group
  constructor/Activate it caused;
* outer chain: the ``group.create`` call with its result, paired with a
  half chain whose ``CreateGroup`` request was caused by that call.
"""

from __future__ import annotations

from typing import Any, Mapping

from collecting.bound import (
    coupled_activate_origin,
    coupled_result_origin,
    is_coupled_activate,
    is_coupled_result,
)
from collecting.chain import Chain, ChainCollector, RelationDesc
from collecting.contract_state import log_dropped, returned_value
from collecting.coupled import ActivateCollector, CoupledActivate, CoupledResult, ResultCollector
from core.config import PrototypeRefs
from core.constants import CREATE_GROUP_METHOD, GROUP_CREATE_CALL_SITE, GROUP_CREATED_STATUS
from core.errors import ObserverDecodeError
from core.types import Group, RecordID
from ledger.classify import (
    Predicate,
    activate_of,
    call_site_in,
    constructor_of,
    incoming_method,
    is_success_result,
    request_id,
    request_reason,
)
from ledger.codec import decode_memory, parse_reference
from ledger.records import Record, as_activate

HalfChain = Chain[Record, CoupledActivate]
GroupChain = Chain[CoupledResult, HalfChain]


def _half_chain_of(is_create_group: Predicate) -> Predicate:
    def predicate(item: object) -> bool:
        return isinstance(item, Chain) and is_create_group(item.parent)

    return predicate


def _half_chain_origin(item: object) -> RecordID | None:
    if not isinstance(item, Chain):
        return None
    return request_reason(item.parent)


class GroupCollector:
    """Builds a Group once the whole create flow has been observed."""

    def __init__(self, prototypes: PrototypeRefs) -> None:
        is_create_group = incoming_method(CREATE_GROUP_METHOD, prototypes.user)
        is_half_chain = _half_chain_of(is_create_group)
        self._results = ResultCollector(call_site_in([GROUP_CREATE_CALL_SITE]), is_success_result)
        self._activates = ActivateCollector(
            constructor_of(prototypes.group), activate_of(prototypes.group)
        )
        self._half_chains: ChainCollector[Record, CoupledActivate] = ChainCollector(
            RelationDesc(is_member=is_create_group, origin_of=request_id, is_proper=is_create_group),
            RelationDesc(
                is_member=is_coupled_activate,
                origin_of=coupled_activate_origin,
                is_proper=is_coupled_activate,
            ),
        )
        self._chains: ChainCollector[CoupledResult, HalfChain] = ChainCollector(
            RelationDesc(
                is_member=is_coupled_result,
                origin_of=coupled_result_origin,
                is_proper=is_coupled_result,
            ),
            RelationDesc(
                is_member=is_half_chain, origin_of=_half_chain_origin, is_proper=is_half_chain
            ),
        )

    def collect(self, record: Record | None) -> Group | None:
        """Feed one record; return the Group it completes, if any."""
        if record is None:
            return None
        coupled_result = self._results.collect(record)
        coupled_activate = self._activates.collect(record)
        half = self._half_chains.collect(record)
        if coupled_activate is not None:
            half = self._half_chains.collect(coupled_activate)

        chain: GroupChain | None = None
        if coupled_result is not None:
            chain = self._chains.collect(coupled_result)
        if half is not None:
            chain = self._chains.collect(half)
        if chain is None:
            return None
        try:
            return build_group(chain)
        except ObserverDecodeError as error:
            log_dropped("group", record, error)
            return None

    def evict(self, before_pulse: int) -> int:
        """Drop pending correlations older than the given pulse; return how many."""
        return (
            self._results.evict(before_pulse)
            + self._activates.evict(before_pulse)
            + self._half_chains.evict(before_pulse)
            + self._chains.evict(before_pulse)
        )


def build_group(chain: GroupChain) -> Group:
    """Map a complete group chain to a Group.

    Raises:
        ObserverDecodeError: If the create response or group memory is malformed.
    """
    activate_record = chain.child.child.activate
    activate = as_activate(activate_record)
    if activate is None:
        raise ObserverDecodeError("Group chain does not carry an Activate record.")
    response = returned_value(chain.parent.result)
    if not isinstance(response, Mapping):
        raise ObserverDecodeError("Group create response is not a mapping.")
    ref = parse_reference(response.get("reference"))
    state = decode_memory(activate.memory, "group memory")
    return Group(
        ref=ref,
        title=_text(state, "title"),
        goal=_text(state, "goal"),
        purpose=_text(state, "purpose"),
        chairman=_text(state, "chairMan"),
        membership=_membership(state.get("membership")),
        status=GROUP_CREATED_STATUS,
    )


def _text(state: Mapping[str, Any], key: str) -> str:
    value = state.get(key)
    return "" if value is None else str(value)


def _membership(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        raise ObserverDecodeError("Group membership is not a list.")
    return tuple(str(member) for member in value)
