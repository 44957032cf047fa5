"""
Unit tests for aquawatch.core.state.notification_store.InMemoryNotificationStore.

These tests validate:
- append assigns ids and preserves every other field
- list_all order and snapshot isolation
- mark_read / mark_all_read / unread_count
- NotificationNotFound for unknown ids, with the store unchanged
- subscribe fires immediately and on change; unsubscribe stops delivery
- subscriber exceptions do not break mutations
- close() makes every operation raise StoreUnavailable
"""

from __future__ import annotations

import itertools
from dataclasses import replace
from typing import List

import pytest

from aquawatch.core.errors import NotificationNotFound, StoreUnavailable
from aquawatch.core.state.notification_store import InMemoryNotificationStore
from aquawatch.domain.models import Notification, Severity


def _mk(parameter: str = "pH", value: float = 6.3, threshold: Severity = Severity.WARNING) -> Notification:
    return Notification(
        parameter=parameter,
        value=value,
        threshold=threshold,
        message=f"{parameter} {threshold.value}",
        timestamp="2026-01-01T10:00:00.000Z",
    )


def test_append_assigns_id_and_round_trips() -> None:
    store = InMemoryNotificationStore()
    n = _mk()

    stored = store.append(n)

    assert stored.id
    listed = store.list_all()
    assert len(listed) == 1
    assert listed[0].to_record() == {**n.to_record(), "id": stored.id}


def test_append_replaces_caller_supplied_id() -> None:
    ids = iter(["a", "b"])
    store = InMemoryNotificationStore(id_factory=lambda: next(ids))

    stored = store.append(replace(_mk(), id="mine"))

    assert stored.id == "a"


def test_append_skips_colliding_ids() -> None:
    ids = iter(["x", "x", "y"])
    store = InMemoryNotificationStore(id_factory=lambda: next(ids))

    first = store.append(_mk())
    second = store.append(_mk())

    assert (first.id, second.id) == ("x", "y")


def test_list_all_is_insertion_ordered_snapshot() -> None:
    counter = itertools.count()
    store = InMemoryNotificationStore(id_factory=lambda: str(next(counter)))
    for p in ("pH", "DO", "EC"):
        store.append(_mk(parameter=p))

    snapshot = store.list_all()
    snapshot.clear()

    assert [n.parameter for n in store.list_all()] == ["pH", "DO", "EC"]


def test_mark_read_flips_only_read() -> None:
    store = InMemoryNotificationStore()
    stored = store.append(_mk())

    store.mark_read(stored.id)

    after = store.get(stored.id)
    assert after.read is True
    assert after.to_record() == {**stored.to_record(), "read": True}
    assert store.unread_count() == 0


def test_mark_read_unknown_id_raises_and_leaves_store_unchanged() -> None:
    store = InMemoryNotificationStore()
    store.append(_mk())
    before = store.list_all()

    with pytest.raises(NotificationNotFound) as exc:
        store.mark_read("nope")

    assert exc.value.notification_id == "nope"
    assert isinstance(exc.value, KeyError)
    assert store.list_all() == before


def test_get_unknown_id_raises() -> None:
    with pytest.raises(NotificationNotFound):
        InMemoryNotificationStore().get("missing")


def test_mark_all_read_returns_changed_count() -> None:
    store = InMemoryNotificationStore()
    a = store.append(_mk())
    store.append(_mk())
    store.append(_mk())
    store.mark_read(a.id)

    assert store.mark_all_read() == 2
    assert store.mark_all_read() == 0
    assert store.unread_count() == 0


def test_subscribe_fires_immediately_and_on_change() -> None:
    store = InMemoryNotificationStore()
    store.append(_mk())
    seen: List[List[Notification]] = []

    unsubscribe = store.subscribe(seen.append)
    assert [len(s) for s in seen] == [1]

    stored = store.append(_mk())
    store.mark_read(stored.id)
    assert [len(s) for s in seen] == [1, 2, 2]
    assert seen[-1][-1].read is True

    unsubscribe()
    store.append(_mk())
    assert len(seen) == 3


def test_mark_read_on_already_read_does_not_publish() -> None:
    store = InMemoryNotificationStore()
    stored = store.append(_mk())
    store.mark_read(stored.id)
    seen: List[List[Notification]] = []
    store.subscribe(seen.append)

    store.mark_read(stored.id)

    assert len(seen) == 1


def test_unsubscribe_unknown_callback_is_ignored() -> None:
    InMemoryNotificationStore().unsubscribe(lambda items: None)


def test_failing_subscriber_does_not_break_mutation_or_others() -> None:
    store = InMemoryNotificationStore()
    seen: List[int] = []

    def boom(items):
        if items:
            raise RuntimeError("subscriber failure")

    store.subscribe(boom)
    store.subscribe(lambda items: seen.append(len(items)))

    stored = store.append(_mk())

    assert stored in store.list_all()
    assert seen == [0, 1]


def test_closed_store_is_unavailable() -> None:
    store = InMemoryNotificationStore()
    stored = store.append(_mk())
    store.close()

    for op in (
        lambda: store.append(_mk()),
        store.list_all,
        lambda: store.mark_read(stored.id),
        store.mark_all_read,
        store.unread_count,
        lambda: store.subscribe(lambda items: None),
    ):
        with pytest.raises(StoreUnavailable):
            op()
