"""Account balance collector."""

from __future__ import annotations

from collecting.contract_state import account_balance, log_dropped
from core.config import PrototypeRefs
from core.errors import ObserverDecodeError
from core.types import Balance
from ledger.classify import amend_of
from ledger.records import Record, as_amend


class BalanceCollector:
    """Turns account Amends into balance changes."""

    def __init__(self, prototypes: PrototypeRefs) -> None:
        self._is_account_amend = amend_of(prototypes.account)

    def collect(self, record: Record | None) -> Balance | None:
        """Return the balance change an account Amend carries, if any."""
        if record is None or not self._is_account_amend(record):
            return None
        amend = as_amend(record)
        if amend is None:
            return None
        try:
            balance = account_balance(amend.memory)
        except ObserverDecodeError as error:
            log_dropped("balance", record, error)
            return None
        return Balance(prev_state=amend.prev_state, account_state=record.id, balance=balance)

    def evict(self, before_pulse: int) -> int:
        """Nothing is cached, so nothing is dropped."""
        return 0
