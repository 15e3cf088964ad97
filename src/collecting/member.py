"""Member creation collector."""

from __future__ import annotations

from typing import Mapping

from collecting.bound import BoundCollector, Couple
from collecting.contract_state import account_balance, log_dropped, returned_value
from core.config import PrototypeRefs
from core.constants import (
    GENESIS_MEMBER_STATUS,
    GENESIS_PULSE_NUMBER,
    MEMBER_CREATE_CALL_SITES,
    MEMBER_CREATED_STATUS,
)
from core.errors import ObserverDecodeError
from core.types import Member, Reference
from ledger.classify import activate_of, call_site_in, constructor_of, is_success_result
from ledger.codec import parse_reference
from ledger.records import Record, as_activate


class MemberCollector:
    """Builds a Member from a member.create call and the account it activated.

    Accounts activated by the genesis pulse have no API call behind them;
    each becomes an internal Member straight away.
    """

    def __init__(self, prototypes: PrototypeRefs) -> None:
        self._collector = BoundCollector(
            call_site_in(MEMBER_CREATE_CALL_SITES),
            is_success_result,
            constructor_of(prototypes.account),
            activate_of(prototypes.account),
        )
        self._is_account_activate = activate_of(prototypes.account)

    def collect(self, record: Record | None) -> Member | None:
        """Feed one record; return the Member it completes, if any."""
        if record is None:
            return None
        if record.pulse_number == GENESIS_PULSE_NUMBER and self._is_account_activate(record):
            try:
                return build_genesis_member(record)
            except ObserverDecodeError as error:
                log_dropped("member", record, error)
                return None
        couple = self._collector.collect(record)
        if couple is None:
            return None
        try:
            return build_member(couple)
        except ObserverDecodeError as error:
            log_dropped("member", record, error)
            return None

    def evict(self, before_pulse: int) -> int:
        """Drop pending correlations older than the given pulse; return how many."""
        return self._collector.evict(before_pulse)


def build_member(couple: Couple) -> Member:
    """Map a matched call result and account Activate to a Member.

    Raises:
        ObserverDecodeError: If the create response or account memory is malformed.
    """
    activate = as_activate(couple.activate)
    if activate is None:
        raise ObserverDecodeError("Member couple does not carry an Activate record.")
    response = returned_value(couple.result)
    if not isinstance(response, Mapping):
        raise ObserverDecodeError("Member create response is not a mapping.")
    member_ref = parse_reference(response.get("reference"))
    return Member(
        member_ref=member_ref,
        balance=account_balance(activate.memory),
        migration_address=str(response.get("migrationAddress") or ""),
        account_state=couple.activate.id,
        status=MEMBER_CREATED_STATUS,
    )


def build_genesis_member(record: Record) -> Member:
    """Map an account activated at genesis to an internal Member.

    The member reference is derived from the account state, since genesis
    accounts are not created through a member call.

    Raises:
        ObserverDecodeError: If the account memory is malformed.
    """
    activate = as_activate(record)
    if activate is None:
        raise ObserverDecodeError(f"Record {record.id} is not an Activate.")
    return Member(
        member_ref=Reference.of(record.id),
        balance=account_balance(activate.memory),
        migration_address="",
        account_state=record.id,
        status=GENESIS_MEMBER_STATUS,
    )
