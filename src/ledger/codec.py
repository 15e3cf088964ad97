"""Ledger payload decoding.

Contract arguments, call results and object memory travel inside records
as msgpack blobs. Member calls add one more layer: the signed request is a
msgpack triple whose first element is the JSON request body. The export
stream itself carries records and pulses as JSON envelopes.
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import Any, Mapping

import base58
import msgpack

from core.constants import REFERENCE_SCHEME_PREFIX
from core.errors import ObserverDecodeError
from core.types import Pulse, RecordID, Reference
from ledger.records import (
    Activate,
    Amend,
    Deactivate,
    IncomingRequest,
    OutgoingRequest,
    Payload,
    Record,
    Result,
)


@dataclass(frozen=True)
class ContractResult:
    """Decoded contract call outcome.

    Attributes:
        returns: Values returned by the contract method; by convention the
            last value is the serialized contract error or None.
        error: System-level execution error, None on success.
    """

    returns: tuple[Any, ...]
    error: Any = None


@dataclass(frozen=True)
class MemberCall:
    """Decoded member API call.

    Attributes:
        call_site: API method name, e.g. ``member.transfer``.
        call_params: Method parameters.
        reference: Reference of the calling member.
    """

    call_site: str
    call_params: Mapping[str, Any] = field(default_factory=dict)
    reference: str = ""


def unpack(blob: bytes, context: str) -> Any:
    """Decode one msgpack blob.

    Raises:
        ObserverDecodeError: If the blob is empty or not valid msgpack.
    """
    if not blob:
        raise ObserverDecodeError(f"Cannot decode {context}: payload is empty.")
    try:
        return msgpack.unpackb(blob, raw=False)
    except (msgpack.UnpackException, ValueError) as error:
        raise ObserverDecodeError(f"Cannot decode {context}: {error}.") from error


def decode_contract_result(result: Result) -> ContractResult:
    """Decode the payload of a Result record."""
    payload = unpack(result.payload, "result payload")
    if not isinstance(payload, Mapping):
        raise ObserverDecodeError(
            f"Cannot decode result payload: expected a mapping, got {type(payload).__name__}."
        )
    returns = payload.get("Returns") or []
    if not isinstance(returns, (list, tuple)):
        raise ObserverDecodeError("Cannot decode result payload: 'Returns' is not a list.")
    return ContractResult(returns=tuple(returns), error=payload.get("Error"))


def is_success(result: Result) -> bool:
    """Return whether the call behind a result finished without errors."""
    try:
        decoded = decode_contract_result(result)
    except ObserverDecodeError:
        return False
    if decoded.error is not None:
        return False
    if len(decoded.returns) < 2:
        return False
    return decoded.returns[1] is None


def first_return_value(result: Result) -> Any:
    """Return the first value returned by a successful call.

    Raises:
        ObserverDecodeError: If the call failed or returned nothing.
    """
    decoded = decode_contract_result(result)
    if decoded.error is not None or len(decoded.returns) < 2 or decoded.returns[1] is not None:
        raise ObserverDecodeError("Cannot read return value of a failed call.")
    return decoded.returns[0]


def decode_member_call(arguments: bytes) -> MemberCall:
    """Decode the arguments of a member ``Call`` request.

    Raises:
        ObserverDecodeError: If any layer of the signed request is malformed.
    """
    args = unpack(arguments, "member call arguments")
    if not isinstance(args, (list, tuple)) or not args:
        raise ObserverDecodeError("Cannot decode member call: expected a non-empty argument list.")
    signed = args[0]
    if not isinstance(signed, bytes):
        raise ObserverDecodeError("Cannot decode member call: signed request is not binary.")
    envelope = unpack(signed, "signed member request")
    if not isinstance(envelope, (list, tuple)) or len(envelope) != 3:
        raise ObserverDecodeError(
            "Cannot decode member call: expected (body, signature, pulse timestamp)."
        )
    body = envelope[0]
    if not isinstance(body, (bytes, str)):
        raise ObserverDecodeError("Cannot decode member call: request body is missing.")
    try:
        request = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as error:
        raise ObserverDecodeError(f"Cannot decode member call body: {error}.") from error
    params = request.get("params") if isinstance(request, Mapping) else None
    if not isinstance(params, Mapping):
        raise ObserverDecodeError("Cannot decode member call: 'params' is missing.")
    call_params = params.get("callParams") or {}
    if not isinstance(call_params, Mapping):
        raise ObserverDecodeError("Cannot decode member call: 'callParams' is not a mapping.")
    return MemberCall(
        call_site=str(params.get("callSite", "")),
        call_params=dict(call_params),
        reference=str(params.get("reference", "")),
    )


def decode_memory(memory: bytes, context: str) -> dict[str, Any]:
    """Decode the state of a contract object.

    Raises:
        ObserverDecodeError: If memory is not a msgpack mapping.
    """
    state = unpack(memory, context)
    if not isinstance(state, Mapping):
        raise ObserverDecodeError(
            f"Cannot decode {context}: expected a mapping, got {type(state).__name__}."
        )
    return dict(state)


def parse_reference(text: object) -> Reference:
    """Validate a reference returned by a contract.

    Raises:
        ObserverDecodeError: If the text is not a base58 reference.
    """
    if not isinstance(text, str) or not text:
        raise ObserverDecodeError(f"Invalid reference {text!r}: expected a non-empty string.")
    body = text[len(REFERENCE_SCHEME_PREFIX):] if text.startswith(REFERENCE_SCHEME_PREFIX) else text
    try:
        decoded = base58.b58decode(body)
    except ValueError as error:
        raise ObserverDecodeError(f"Invalid reference '{text}': {error}.") from error
    if not decoded:
        raise ObserverDecodeError(f"Invalid reference '{text}': empty payload.")
    return Reference(body)


def decode_pulse_envelope(envelope: Mapping[str, Any]) -> Pulse:
    """Decode one pulse line of the export stream.

    Raises:
        ObserverDecodeError: If a required field is missing or malformed.
    """
    try:
        return Pulse(
            number=int(envelope["number"]),
            entropy=_binary(envelope.get("entropy")),
            timestamp=int(envelope.get("timestamp") or 0),
        )
    except (KeyError, TypeError, ValueError) as error:
        raise ObserverDecodeError(f"Cannot decode pulse envelope: {error!r}.") from error


def decode_record_envelope(envelope: Mapping[str, Any]) -> Record:
    """Decode one record line of the export stream.

    Identifiers travel as base58 strings and binary blobs as base64. The
    ``type`` field selects the payload variant.

    Raises:
        ObserverDecodeError: If the envelope type is unknown or a field is malformed.
    """
    try:
        record_id = RecordID.from_string(envelope["id"])
        sequence = int(envelope["sequence"])
        payload = _decode_payload(str(envelope["type"]), envelope)
    except (KeyError, TypeError, ValueError) as error:
        raise ObserverDecodeError(f"Cannot decode record envelope: {error!r}.") from error
    return Record(id=record_id, sequence=sequence, payload=payload)


def _decode_payload(kind: str, envelope: Mapping[str, Any]) -> Payload:
    if kind == "incoming":
        prototype = envelope.get("prototype")
        return IncomingRequest(
            method=str(envelope.get("method", "")),
            prototype=Reference(prototype) if prototype else None,
            reason=_optional_id(envelope.get("reason")),
            arguments=_binary(envelope.get("arguments")),
        )
    if kind == "outgoing":
        return OutgoingRequest(
            method=str(envelope.get("method", "")),
            reason=_optional_id(envelope.get("reason")),
            arguments=_binary(envelope.get("arguments")),
        )
    if kind == "result":
        return Result(
            request=RecordID.from_string(envelope["request"]),
            payload=_binary(envelope.get("payload")),
        )
    if kind == "activate":
        return Activate(
            request=RecordID.from_string(envelope["request"]),
            image=Reference(str(envelope["image"])),
            memory=_binary(envelope.get("memory")),
        )
    if kind == "amend":
        return Amend(
            request=RecordID.from_string(envelope["request"]),
            image=Reference(str(envelope["image"])),
            memory=_binary(envelope.get("memory")),
            prev_state=RecordID.from_string(envelope["prev_state"]),
        )
    if kind == "deactivate":
        return Deactivate(
            request=RecordID.from_string(envelope["request"]),
            image=Reference(str(envelope["image"])),
            prev_state=RecordID.from_string(envelope["prev_state"]),
        )
    raise ObserverDecodeError(f"Unknown record type '{kind}'.")


def _optional_id(value: Any) -> RecordID | None:
    if not value:
        return None
    return RecordID.from_string(str(value))


def _binary(value: Any) -> bytes:
    if not value:
        return b""
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as error:
        raise ObserverDecodeError(f"Invalid base64 field: {error}.") from error
