"""Unit tests for the generic chain collector."""

from __future__ import annotations

from dataclasses import dataclass

from collecting.chain import Chain, ChainCollector, RelationDesc
from core.types import RecordID
from tests.record_factory import PULSE, new_id


@dataclass(frozen=True)
class _Item:
    kind: str
    origin: RecordID
    proper: bool = True


def _relation(kind: str) -> RelationDesc:
    return RelationDesc(
        is_member=lambda item: isinstance(item, _Item) and item.kind == kind,
        origin_of=lambda item: item.origin,
        is_proper=lambda item: item.proper,
    )


def _collector() -> ChainCollector[_Item, _Item]:
    return ChainCollector(_relation("parent"), _relation("child"))


def test_collect_ignores_unrelated_items() -> None:
    """Items matching neither side should leave no trace."""
    collector = _collector()

    result = collector.collect(_Item("other", new_id()))

    assert result is None and collector.pending() == 0


def test_collect_ignores_none() -> None:
    """None input should be a no-op."""
    collector = _collector()

    assert collector.collect(None) is None and collector.pending() == 0


def test_collect_pairs_parent_then_child() -> None:
    """A parent followed by its child should emit one chain."""
    collector = _collector()
    origin = new_id()
    parent = _Item("parent", origin)
    child = _Item("child", origin)

    first = collector.collect(parent)
    chain = collector.collect(child)

    assert first is None
    assert chain == Chain(parent=parent, child=child)
    assert collector.pending() == 0


def test_collect_pairs_child_then_parent_among_noise() -> None:
    """Arrival order and interleaved unrelated items should not matter."""
    collector = _collector()
    origin = new_id()
    parent = _Item("parent", origin)
    child = _Item("child", origin)
    chains = [
        collector.collect(item)
        for item in (
            child,
            _Item("other", origin),
            _Item("parent", new_id()),
            parent,
        )
    ]

    emitted = [chain for chain in chains if chain is not None]

    assert emitted == [Chain(parent=parent, child=child)]
    assert not collector.holds(origin)


def test_two_parents_for_one_origin_emit_one_chain() -> None:
    """A duplicate parent should never produce a second chain."""
    collector = _collector()
    origin = new_id()
    child = _Item("child", origin)

    collector.collect(_Item("parent", origin))
    collector.collect(_Item("parent", origin))
    first = collector.collect(child)
    second = collector.collect(child)

    assert first is not None and second is None


def test_improper_item_evicts_waiting_partner() -> None:
    """An improper item should discard the pending partner of its origin."""
    collector = _collector()
    origin = new_id()

    collector.collect(_Item("parent", origin))
    collector.collect(_Item("child", origin, proper=False))

    assert not collector.holds(origin) and collector.pending() == 0


def test_improper_item_first_blocks_later_partner() -> None:
    """An improper item arriving first should cancel the pairing."""
    collector = _collector()
    origin = new_id()

    collector.collect(_Item("child", origin, proper=False))
    chain = collector.collect(_Item("parent", origin))

    assert chain is None and not collector.holds(origin)


def test_evict_drops_entries_older_than_pulse() -> None:
    """Eviction should only drop entries from pulses before the limit."""
    collector = _collector()
    old_origin = new_id(PULSE - 10)
    fresh_origin = new_id(PULSE)
    collector.collect(_Item("parent", old_origin))
    collector.collect(_Item("child", fresh_origin))

    dropped = collector.evict(PULSE - 5)

    assert dropped == 1
    assert not collector.holds(old_origin) and collector.holds(fresh_origin)
