"""Deposit withdrawal collector."""

from __future__ import annotations

from typing import Mapping

from collecting.contract_state import log_dropped, record_timestamp, returned_value
from collecting.coupled import CoupledResult, ResultCollector
from core.constants import DEPOSIT_TRANSFER_CALL_SITE, TRANSFER_KIND_WITHDRAW
from core.errors import ObserverDecodeError
from core.types import DepositTransfer
from ledger.classify import call_site_in, is_success_result, member_call
from ledger.codec import parse_reference
from ledger.records import Record


class WithdrawTransferCollector:
    """Builds a withdraw transfer from a deposit.transfer call and its result.

    Released deposit funds move to the calling member's own account, so the
    sender and the recipient are the same member.
    """

    def __init__(self) -> None:
        self._collector = ResultCollector(
            call_site_in([DEPOSIT_TRANSFER_CALL_SITE]),
            is_success_result,
        )

    def collect(self, record: Record | None) -> DepositTransfer | None:
        """Feed one record; return the withdrawal it completes, if any."""
        if record is None:
            return None
        coupled = self._collector.collect(record)
        if coupled is None:
            return None
        try:
            return build_withdraw_transfer(coupled)
        except ObserverDecodeError as error:
            log_dropped("withdraw_transfer", record, error)
            return None

    def evict(self, before_pulse: int) -> int:
        """Drop pending correlations older than the given pulse; return how many."""
        return self._collector.evict(before_pulse)


def build_withdraw_transfer(coupled: CoupledResult) -> DepositTransfer:
    """Map a deposit.transfer call and its result to a withdraw transfer.

    Raises:
        ObserverDecodeError: If the call parameters or member reference are malformed.
    """
    call = member_call(coupled.request)
    if call is None:
        raise ObserverDecodeError(f"Request {coupled.request.id} is not a member call.")
    amount = call.call_params.get("amount")
    if amount is None:
        raise ObserverDecodeError("Withdraw call has no amount.")
    response = returned_value(coupled.result)
    fee = "0"
    if isinstance(response, Mapping) and response.get("fee") is not None:
        fee = str(response["fee"])
    member = parse_reference(call.reference)
    pulse_number = coupled.request.pulse_number
    return DepositTransfer(
        tx_id=coupled.request.id,
        amount=str(amount),
        fee=fee,
        from_member=member,
        to_member=member,
        pulse_number=pulse_number,
        timestamp=record_timestamp(pulse_number),
        eth_hash=str(call.call_params.get("ethTxHash") or "").lower(),
        kind=TRANSFER_KIND_WITHDRAW,
    )
