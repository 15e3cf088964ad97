"""Order-independent parent/child correlation.

A ChainCollector pairs a "parent" item with a "child" item that share an
origin key. Items may arrive in any order and interleaved with unrelated
items; pending halves wait in per-instance caches until their partner shows
up. Items are raw records or pairs emitted by other collectors, which is how
multi-hop chains are built.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from core.types import RecordID
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)

P = TypeVar("P")
C = TypeVar("C")


@dataclass(frozen=True)
class RelationDesc:
    """One side of a relation.

    Attributes:
        is_member: Whether an item plays this role at all.
        origin_of: Correlation key of a member item, None when it has none.
        is_proper: Whether a member item is the sub-case worth pairing.
    """

    is_member: Callable[[object], bool]
    origin_of: Callable[[object], RecordID | None]
    is_proper: Callable[[object], bool]


@dataclass(frozen=True)
class Chain(Generic[P, C]):
    """Matched parent and child."""

    parent: P
    child: C


class ChainCollector(Generic[P, C]):
    """Two-sided cache-based correlator.

    An origin is held by at most one of the three caches: ``parents`` and
    ``children`` hold proper items waiting for a partner, ``others`` marks
    origins whose pairing is already known to be impossible.
    """

    def __init__(self, parent: RelationDesc, child: RelationDesc) -> None:
        self._parent = parent
        self._child = child
        self._parents: dict[RecordID, P] = {}
        self._children: dict[RecordID, C] = {}
        self._others: set[RecordID] = set()

    def collect(self, item: object) -> Chain[P, C] | None:
        """Feed one item; return the chain it completes, if any."""
        if item is None:
            return None
        if self._parent.is_member(item):
            own, opposite, is_parent = self._parent, self._child, True
        elif self._child.is_member(item):
            own, opposite, is_parent = self._child, self._parent, False
        else:
            return None
        origin = own.origin_of(item)
        if origin is None:
            return None

        if origin in self._others:
            self._others.discard(origin)
            return None

        own_cache = self._parents if is_parent else self._children
        opposite_cache = self._children if is_parent else self._parents

        if own.is_proper(item):
            if origin not in opposite_cache:
                if origin in own_cache:
                    _LOGGER.warning("chain_pending_item_replaced", origin=str(origin))
                own_cache[origin] = item  # type: ignore[assignment]
                return None
            partner = opposite_cache.pop(origin)
            if not opposite.is_proper(partner):
                return None
            if is_parent:
                return Chain(parent=item, child=partner)  # type: ignore[arg-type]
            return Chain(parent=partner, child=item)  # type: ignore[arg-type]

        if origin in opposite_cache:
            del opposite_cache[origin]
        else:
            self._others.add(origin)
        return None

    def evict(self, before_pulse: int) -> int:
        """Drop pending entries whose origin is older than the given pulse.

        Returns:
            Number of dropped entries.
        """
        dropped = 0
        for cache in (self._parents, self._children):
            stale = [origin for origin in cache if origin.pulse_number < before_pulse]
            for origin in stale:
                del cache[origin]
            dropped += len(stale)
        stale_marks = {origin for origin in self._others if origin.pulse_number < before_pulse}
        self._others -= stale_marks
        return dropped + len(stale_marks)

    def pending(self) -> int:
        """Number of origins currently held by any cache."""
        return len(self._parents) + len(self._children) + len(self._others)

    def holds(self, origin: RecordID) -> bool:
        """Whether any cache holds the given origin."""
        return origin in self._parents or origin in self._children or origin in self._others
