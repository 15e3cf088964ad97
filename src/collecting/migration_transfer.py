"""Migration transfer collector.

Every migration daemon confirms an incoming migration with its own
deposit.migration call. The first confirmation creates the deposit (a
nested ``New`` on the deposit prototype); the confirmation that completes
the quorum moves the funds with a nested ``TransferToDeposit``. Only the
latter is a transfer, from the migration admin member to the member that
owns the deposit.
"""

from __future__ import annotations

from typing import Mapping

from collecting.bound import coupled_result_origin, is_coupled_result
from collecting.chain import Chain, ChainCollector, RelationDesc
from collecting.contract_state import log_dropped, record_timestamp, returned_value
from collecting.coupled import CoupledResult, ResultCollector
from core.config import PrototypeRefs
from core.constants import (
    CONSTRUCTOR_METHOD,
    DEPOSIT_MIGRATION_CALL_SITE,
    MIGRATION_ADMIN_MEMBER_NAME,
    TRANSFER_KIND_MIGRATION,
    TRANSFER_TO_DEPOSIT_METHOD,
)
from core.errors import ObserverDecodeError
from core.types import DepositTransfer, Reference
from ledger.classify import (
    Predicate,
    call_site_in,
    incoming_method,
    is_success_result,
    member_call,
    request_reason,
)
from ledger.codec import parse_reference
from ledger.records import Record

MigrationChain = Chain[CoupledResult, Record]


def _either(first: Predicate, second: Predicate) -> Predicate:
    def predicate(item: object) -> bool:
        return first(item) or second(item)

    return predicate


class MigrationTransferCollector:
    """Pairs a successful deposit.migration call with the funds move it caused.

    A nested deposit constructor marks the call as the creating
    confirmation, which cancels the pairing. A confirmation that neither
    creates nor moves funds leaves its call pending until eviction.
    """

    def __init__(self, prototypes: PrototypeRefs) -> None:
        is_transfer_to_deposit = incoming_method(TRANSFER_TO_DEPOSIT_METHOD, prototypes.deposit)
        is_deposit_step = _either(
            is_transfer_to_deposit, incoming_method(CONSTRUCTOR_METHOD, prototypes.deposit)
        )
        self._results = ResultCollector(
            call_site_in([DEPOSIT_MIGRATION_CALL_SITE]), is_success_result
        )
        self._chains: ChainCollector[CoupledResult, Record] = ChainCollector(
            RelationDesc(
                is_member=is_coupled_result,
                origin_of=coupled_result_origin,
                is_proper=is_coupled_result,
            ),
            RelationDesc(
                is_member=is_deposit_step,
                origin_of=request_reason,
                is_proper=is_transfer_to_deposit,
            ),
        )

    def collect(self, record: Record | None) -> DepositTransfer | None:
        """Feed one record; return the migration transfer it completes, if any."""
        if record is None:
            return None
        coupled = self._results.collect(record)
        chain = self._chains.collect(record)
        if coupled is not None:
            chain = self._chains.collect(coupled)
        if chain is None:
            return None
        try:
            return build_migration_transfer(chain)
        except ObserverDecodeError as error:
            log_dropped("migration_transfer", record, error)
            return None

    def evict(self, before_pulse: int) -> int:
        """Drop pending correlations older than the given pulse; return how many."""
        return self._results.evict(before_pulse) + self._chains.evict(before_pulse)


def build_migration_transfer(chain: MigrationChain) -> DepositTransfer:
    """Map a confirmed migration and its funds move to a migration transfer.

    The recipient is the deposit owner returned by the call; the sender is
    always the migration admin member.

    Raises:
        ObserverDecodeError: If the call parameters or the returned owner are malformed.
    """
    request = chain.parent.request
    call = member_call(request)
    if call is None:
        raise ObserverDecodeError(f"Request {request.id} is not a member call.")
    amount = call.call_params.get("amount")
    if amount is None:
        raise ObserverDecodeError("Migration call has no amount.")
    response = returned_value(chain.parent.result)
    if isinstance(response, Mapping):
        response = response.get("reference")
    return DepositTransfer(
        tx_id=request.id,
        amount=str(amount),
        fee="0",
        from_member=Reference.genesis(MIGRATION_ADMIN_MEMBER_NAME),
        to_member=parse_reference(response),
        pulse_number=request.pulse_number,
        timestamp=record_timestamp(request.pulse_number),
        eth_hash=str(call.call_params.get("ethTxHash") or "").lower(),
        kind=TRANSFER_KIND_MIGRATION,
    )
