from __future__ import annotations

import logging
import threading
from queue import Empty
from typing import Optional

from aquawatch.core.state.notification_store import NotificationStore
from aquawatch.domain.models import Notification
from aquawatch.notification.base import DeliveryEvent
from aquawatch.notification.notification_thread import NotificationWorkerThread
from aquawatch.notification.payload import build_notification_webhook_payload
from aquawatch.runtime.event_bus import EventBus

logger = logging.getLogger(__name__)


class NotificationAdapterThread:
    """
    Adapter thread that bridges stored notifications -> NotificationWorkerThread.

    Responsibilities
    ----------------
    - Consume new notifications from `EventBus.notifications_q`.
    - Build a webhook payload with totals taken from the store.
    - Emit `DeliveryEvent` objects into `NotificationWorkerThread` asynchronously.

    Parameters
    ----------
    bus
        Event bus providing the notification queue.
    store
        Notification store used for the totals snapshot.
    notifier
        Delivery worker responsible for actual sending.
    stop_event
        Stop signal for the thread.
    """

    def __init__(
        self,
        bus: EventBus,
        store: NotificationStore,
        notifier: NotificationWorkerThread,
        stop_event: threading.Event,
    ):
        self._bus = bus
        self._store = store
        self._notifier = notifier
        self._stop = stop_event
        self._thread = threading.Thread(target=self._run, name="notification-adapter", daemon=True)

    def start(self) -> None:
        if not self._thread.is_alive():
            self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def join(self, timeout: Optional[float] = 2.0) -> None:
        self._thread.join(timeout=timeout)

    def forward(self, notification: Notification) -> None:
        """Build the delivery event for one notification and hand it to the worker."""
        payload = build_notification_webhook_payload(notification, self._store.list_all())
        self._notifier.emit(
            DeliveryEvent(
                type="notification",
                payload=payload,
                severity=notification.threshold.value,
                source=notification.parameter,
                ts=notification.timestamp,
            )
        )

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                notification = self._bus.notifications_q.get(timeout=0.5)
            except Empty:
                continue

            try:
                self.forward(notification)
            except Exception:
                logger.exception("Forwarding notification %s failed", notification.id)
