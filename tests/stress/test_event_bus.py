"""
Unit and stress tests for aquawatch.runtime.event_bus.EventBus.

Unit tests validate:
- publish_notification enqueues notifications when capacity is available
- publish_notification does not raise when the queue is full (drop policy)

Stress tests validate:
- publish_notification is safe under concurrent calls from multiple threads
- the bus does not deadlock or crash under high contention

Notes
-----
Thread stress tests are probabilistic: passing increases confidence but does not
prove the absence of races. Run repeatedly for higher confidence.
"""

from __future__ import annotations

import threading
from queue import Empty
from typing import List

import pytest

from aquawatch.domain.models import Notification, Severity
from aquawatch.runtime.event_bus import EventBus


def _mk_notification(i: int) -> Notification:
    return Notification(
        parameter="pH",
        value=6.3,
        threshold=Severity.WARNING,
        message=f"n{i}",
        timestamp="2026-01-01T00:00:00.000Z",
        id=str(i),
    )


def _drain_queue(q, limit: int = 10_000) -> List[Notification]:
    out: List[Notification] = []
    for _ in range(limit):
        try:
            out.append(q.get_nowait())
        except Empty:
            break
    return out


def test_publish_notification_enqueues_when_space_available() -> None:
    bus = EventBus()

    bus.publish_notification(_mk_notification(1))

    assert bus.notifications_q.get_nowait().message == "n1"


def test_publish_notification_drops_when_full_without_raising() -> None:
    bus = EventBus()
    for i in range(bus.notifications_q.maxsize):
        bus.notifications_q.put_nowait(_mk_notification(i))

    bus.publish_notification(_mk_notification(999999))

    assert bus.notifications_q.qsize() == bus.notifications_q.maxsize


@pytest.mark.stress
def test_event_bus_concurrent_producers() -> None:
    """
    Stress-test publish_notification from 16 threads.

    Drops are expected once producers outrun the (absent) consumer; the queue
    must stay bounded and no producer may fail or hang.
    """
    bus = EventBus()
    start = threading.Barrier(16)
    errors: List[BaseException] = []

    def producer(tid: int) -> None:
        try:
            start.wait()
            for k in range(3000):
                bus.publish_notification(_mk_notification(tid * 1_000_000 + k))
        except BaseException as e:
            errors.append(e)

    threads = [threading.Thread(target=producer, args=(t,)) for t in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert all(not t.is_alive() for t in threads), "A producer thread did not finish (possible deadlock)"
    if errors:
        raise AssertionError(f"Concurrency test caught exceptions: {errors!r}")

    assert bus.notifications_q.qsize() <= bus.notifications_q.maxsize
    drained = _drain_queue(bus.notifications_q, limit=5000)
    assert all(isinstance(n, Notification) for n in drained)
