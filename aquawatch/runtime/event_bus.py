from __future__ import annotations

import logging
import queue
from dataclasses import dataclass, field
from queue import Queue

from aquawatch.domain.models import Notification

logger = logging.getLogger(__name__)


@dataclass
class EventBus:
    """
    In-process event bus for newly created notifications.

    The bus provides a simple producer/consumer mechanism:
    - Producers publish :class:`~aquawatch.domain.models.Notification` via :meth:`publish_notification`.
    - Consumers (e.g., adapter threads) read from :attr:`notifications_q`.

    Concurrency Model
    -----------------
    :class:`queue.Queue` is thread-safe. Multiple producers may publish
    concurrently without additional locking.

    Backpressure Policy
    -------------------
    If the queue is full, the notification is dropped from the bus (it is
    already persisted in the store). Outbound delivery never blocks evaluation.

    Attributes
    ----------
    notifications_q
        Bounded queue of notifications. Consumers should drain this queue in a loop.
    """

    notifications_q: "Queue[Notification]" = field(default_factory=lambda: Queue(maxsize=5000))

    def publish_notification(self, notification: Notification) -> None:
        """
        Publish a notification to the queue (non-blocking).

        Parameters
        ----------
        notification
            Stored notification to forward.
        """
        try:
            self.notifications_q.put_nowait(notification)
        except queue.Full:
            logger.warning("Event bus full, dropping notification %s", notification.id)
