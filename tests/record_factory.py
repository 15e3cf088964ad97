"""Builders for ledger records used across unit tests."""

from __future__ import annotations

import itertools
import json
from typing import Any, Mapping

import msgpack

from core.config import PrototypeRefs
from core.constants import CONSTRUCTOR_METHOD, GENESIS_PULSE_NUMBER, MEMBER_CALL_METHOD
from core.types import RecordID, Reference
from ledger.records import Activate, Amend, IncomingRequest, OutgoingRequest, Record, Result

PULSE = GENESIS_PULSE_NUMBER + 100
PROTOTYPES = PrototypeRefs()

_DIGESTS = itertools.count(1)
_SEQUENCES = itertools.count(1)


def new_id(pulse: int = PULSE) -> RecordID:
    """Return a fresh record id in the given pulse."""
    return RecordID(pulse_number=pulse, digest=next(_DIGESTS).to_bytes(28, "big"))


def new_reference(pulse: int = PULSE) -> str:
    """Return a fresh valid object reference string."""
    return Reference.of(new_id(pulse)).value


def pack(value: Any) -> bytes:
    return msgpack.packb(value, use_bin_type=True)


def member_call_arguments(
    call_site: str,
    call_params: Mapping[str, Any] | None = None,
    reference: str = "",
) -> bytes:
    """Encode member call arguments the way the API gateway signs them."""
    body = json.dumps(
        {
            "jsonrpc": "2.0",
            "method": "contract.call",
            "params": {
                "callSite": call_site,
                "callParams": dict(call_params or {}),
                "reference": reference,
            },
        }
    ).encode("utf-8")
    signed = pack([body, b"signature", b"pulse-time"])
    return pack([signed])


def incoming(
    method: str,
    prototype: str | None = None,
    reason: RecordID | None = None,
    arguments: bytes = b"",
    pulse: int = PULSE,
) -> Record:
    return Record(
        id=new_id(pulse),
        sequence=next(_SEQUENCES),
        payload=IncomingRequest(
            method=method,
            prototype=Reference(prototype) if prototype else None,
            reason=reason,
            arguments=arguments,
        ),
    )


def outgoing(reason: RecordID | None = None, pulse: int = PULSE) -> Record:
    return Record(
        id=new_id(pulse),
        sequence=next(_SEQUENCES),
        payload=OutgoingRequest(method="Call", reason=reason, arguments=b""),
    )


def member_call(
    call_site: str,
    call_params: Mapping[str, Any] | None = None,
    reference: str = "",
    reason: RecordID | None = None,
    pulse: int = PULSE,
) -> Record:
    """Incoming ``Call`` request carrying a signed member API call."""
    return incoming(
        MEMBER_CALL_METHOD,
        prototype=PROTOTYPES.member,
        reason=reason,
        arguments=member_call_arguments(call_site, call_params, reference),
        pulse=pulse,
    )


def constructor(prototype: str, reason: RecordID | None, pulse: int = PULSE) -> Record:
    return incoming(CONSTRUCTOR_METHOD, prototype=prototype, reason=reason, pulse=pulse)


def result_of(
    request: Record,
    value: Any = None,
    error: Any = None,
    pulse: int | None = None,
) -> Record:
    """Result answering a request; ``error`` fills the contract error slot."""
    payload = pack({"Returns": [value, error], "Error": None})
    return Record(
        id=new_id(pulse or request.pulse_number),
        sequence=next(_SEQUENCES),
        payload=Result(request=request.id, payload=payload),
    )


def activate_of(
    request: Record,
    image: str,
    memory: Mapping[str, Any] | None = None,
    pulse: int | None = None,
) -> Record:
    return Record(
        id=new_id(pulse or request.pulse_number),
        sequence=next(_SEQUENCES),
        payload=Activate(
            request=request.id,
            image=Reference(image),
            memory=pack(dict(memory)) if memory is not None else b"",
        ),
    )


def amend(
    image: str,
    memory: Mapping[str, Any],
    prev_state: RecordID,
    pulse: int = PULSE,
) -> Record:
    return Record(
        id=new_id(pulse),
        sequence=next(_SEQUENCES),
        payload=Amend(
            request=new_id(pulse),
            image=Reference(image),
            memory=pack(dict(memory)),
            prev_state=prev_state,
        ),
    )
