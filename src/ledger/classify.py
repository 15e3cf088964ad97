"""Record classification predicates.

Predicates answer "which role does this record play" questions for the
collectors. They never raise: a record that cannot be decoded simply does
not satisfy the predicate.
"""

from __future__ import annotations

from typing import Callable, Iterable

from core.constants import CONSTRUCTOR_METHOD, MEMBER_CALL_METHOD
from core.errors import ObserverDecodeError
from core.logging_config import get_logger
from core.types import RecordID
from ledger.codec import MemberCall, decode_member_call, is_success
from ledger.records import as_activate, as_amend, as_incoming, as_outgoing, as_result

_LOGGER = get_logger(__name__)

Predicate = Callable[[object], bool]
OriginFunc = Callable[[object], "RecordID | None"]


def is_request(item: object) -> bool:
    return as_incoming(item) is not None or as_outgoing(item) is not None


def is_incoming(item: object) -> bool:
    return as_incoming(item) is not None


def is_result(item: object) -> bool:
    return as_result(item) is not None


def is_activate(item: object) -> bool:
    return as_activate(item) is not None


def is_success_result(item: object) -> bool:
    result = as_result(item)
    return result is not None and is_success(result)


def member_call(item: object) -> MemberCall | None:
    """Decode the member API call carried by an incoming ``Call`` request."""
    request = as_incoming(item)
    if request is None or request.method != MEMBER_CALL_METHOD:
        return None
    try:
        return decode_member_call(request.arguments)
    except ObserverDecodeError as error:
        _LOGGER.debug("member_call_undecodable", error=str(error))
        return None


def call_site_in(call_sites: Iterable[str]) -> Predicate:
    """Build a predicate matching member calls of the given API methods."""
    expected = frozenset(call_sites)

    def predicate(item: object) -> bool:
        call = member_call(item)
        return call is not None and call.call_site in expected

    return predicate


def incoming_method(method: str, prototype: str | None = None) -> Predicate:
    """Build a predicate matching incoming requests by method and prototype."""

    def predicate(item: object) -> bool:
        request = as_incoming(item)
        if request is None or request.method != method:
            return False
        if prototype is None:
            return True
        return request.prototype is not None and request.prototype.value == prototype

    return predicate


def constructor_of(prototype: str) -> Predicate:
    """Build a predicate matching ``New`` requests of a contract prototype."""
    return incoming_method(CONSTRUCTOR_METHOD, prototype)


def activate_of(prototype: str) -> Predicate:
    """Build a predicate matching Activates of a contract prototype."""

    def predicate(item: object) -> bool:
        activate = as_activate(item)
        return activate is not None and activate.image.value == prototype

    return predicate


def amend_of(prototype: str) -> Predicate:
    """Build a predicate matching Amends of a contract prototype."""

    def predicate(item: object) -> bool:
        amend = as_amend(item)
        return amend is not None and amend.image.value == prototype

    return predicate


def request_id(item: object) -> RecordID | None:
    """Origin of a request: its own identifier."""
    if not is_request(item):
        return None
    return item.id  # type: ignore[attr-defined]


def request_reason(item: object) -> RecordID | None:
    """Origin of a nested request: the request that caused it."""
    request = as_incoming(item)
    if request is None:
        return None
    return request.reason


def result_request(item: object) -> RecordID | None:
    """Origin of a result: the request it answers."""
    result = as_result(item)
    return result.request if result is not None else None


def activate_request(item: object) -> RecordID | None:
    """Origin of an activate: the constructor request that created it."""
    activate = as_activate(item)
    return activate.request if activate is not None else None
