"""
Unit tests for aquawatch.notification.notification_thread.NotificationWorkerThread.

These tests validate the delivery worker:
- emitted events reach every notifier
- failed sends are retried, then given up on without killing the thread
- a full queue drops events instead of blocking
"""

from __future__ import annotations

import threading
from typing import List

from aquawatch.notification.base import DeliveryEvent
from aquawatch.notification.notification_thread import NotificationThreadConfig, NotificationWorkerThread

FAST = NotificationThreadConfig(retry_count=2, retry_backoff_s=0.0, poll_timeout_s=0.05)


class RecordingNotifier:
    def __init__(self, expected: int = 1) -> None:
        self.events: List[DeliveryEvent] = []
        self.done = threading.Event()
        self._expected = expected

    def notify(self, event: DeliveryEvent) -> None:
        self.events.append(event)
        if len(self.events) >= self._expected:
            self.done.set()


class FlakyNotifier:
    """Fails ``failures`` times, then succeeds."""

    def __init__(self, failures: int) -> None:
        self.calls = 0
        self._failures = failures
        self.done = threading.Event()

    def notify(self, event: DeliveryEvent) -> None:
        self.calls += 1
        if self.calls <= self._failures:
            raise ConnectionError("webhook down")
        self.done.set()


def _event(i: int = 0) -> DeliveryEvent:
    return DeliveryEvent(type="notification", payload={"i": i})


def test_events_reach_every_notifier() -> None:
    a, b = RecordingNotifier(expected=2), RecordingNotifier(expected=2)
    worker = NotificationWorkerThread([a, b], cfg=FAST)
    worker.start()
    try:
        worker.emit(_event(1))
        worker.emit(_event(2))
        assert a.done.wait(2.0)
        assert b.done.wait(2.0)
    finally:
        worker.stop()

    assert [e.payload["i"] for e in a.events] == [1, 2]
    assert [e.payload["i"] for e in b.events] == [1, 2]


def test_retries_until_success() -> None:
    flaky = FlakyNotifier(failures=2)
    worker = NotificationWorkerThread([flaky], cfg=FAST)
    worker.start()
    try:
        worker.emit(_event())
        assert flaky.done.wait(2.0)
    finally:
        worker.stop()

    assert flaky.calls == 3


def test_gives_up_after_retries_and_keeps_running() -> None:
    broken = FlakyNotifier(failures=100)
    after = RecordingNotifier()
    worker = NotificationWorkerThread([broken, after], cfg=FAST)
    worker.start()
    try:
        worker.emit(_event())
        assert after.done.wait(2.0)
    finally:
        worker.stop()

    assert broken.calls == FAST.retry_count + 1


def test_full_queue_drops_event() -> None:
    worker = NotificationWorkerThread([RecordingNotifier()], cfg=NotificationThreadConfig(max_queue=1))

    worker.emit(_event(1))
    worker.emit(_event(2))

    assert worker._q.qsize() == 1
