"""Unit tests for group collection."""

from __future__ import annotations

import random

from collecting.group import GroupCollector
from core.constants import CREATE_GROUP_METHOD
from core.types import Reference
from tests import record_factory as factory

_GROUP = factory.PROTOTYPES.group
_USER = factory.PROTOTYPES.user


def _group_flow(group_ref: str) -> list:
    call = factory.member_call("group.create", {"title": "Savers"})
    create_group = factory.incoming(CREATE_GROUP_METHOD, prototype=_USER, reason=call.id)
    new_request = factory.constructor(_GROUP, reason=create_group.id)
    memory = {
        "title": "Savers",
        "goal": "Save",
        "purpose": "Together",
        "chairMan": "chair-ref",
        "membership": ["chair-ref", "member-ref"],
    }
    return [
        call,
        factory.result_of(call, {"reference": group_ref}),
        create_group,
        factory.result_of(create_group, None),
        new_request,
        factory.result_of(new_request, None),
        factory.activate_of(new_request, _GROUP, memory),
    ]


def test_group_collector_builds_group() -> None:
    """A complete group.create flow should yield one group."""
    collector = GroupCollector(factory.PROTOTYPES)
    group_ref = factory.new_reference()

    groups = [group for group in map(collector.collect, _group_flow(group_ref)) if group]

    assert len(groups) == 1
    group = groups[0]
    assert group.ref == Reference(group_ref)
    assert (group.title, group.goal, group.purpose) == ("Savers", "Save", "Together")
    assert group.chairman == "chair-ref"
    assert group.membership == ("chair-ref", "member-ref")
    assert group.status == "SUCCESS"


def test_group_collector_is_order_independent() -> None:
    """Shuffled flows should still yield exactly one group each."""
    shuffler = random.Random(7)
    for _ in range(25):
        collector = GroupCollector(factory.PROTOTYPES)
        records = _group_flow(factory.new_reference())
        shuffler.shuffle(records)

        groups = [group for group in map(collector.collect, records) if group is not None]

        assert len(groups) == 1


def test_group_collector_requires_user_create_group_call() -> None:
    """A CreateGroup call from a foreign prototype should not bind."""
    collector = GroupCollector(factory.PROTOTYPES)
    call = factory.member_call("group.create")
    create_group = factory.incoming(
        CREATE_GROUP_METHOD, prototype=factory.PROTOTYPES.member, reason=call.id
    )
    new_request = factory.constructor(_GROUP, reason=create_group.id)
    records = [
        call,
        factory.result_of(call, {"reference": factory.new_reference()}),
        create_group,
        new_request,
        factory.activate_of(new_request, _GROUP, {"title": "x"}),
    ]

    groups = [group for group in map(collector.collect, records) if group is not None]

    assert groups == []
