from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Protocol

from aquawatch.core.errors import NotificationNotFound, StoreUnavailable
from aquawatch.domain.models import Notification

logger = logging.getLogger(__name__)

NotificationsCallback = Callable[[List[Notification]], None]


class NotificationStore(Protocol):
    """
    Persistence and change-propagation contract for notifications.

    The evaluator depends only on :meth:`append`. UI-facing layers use the
    remaining methods. Any backing store (database, message queue, polling
    loop) can satisfy the protocol.

    Methods
    -------
    append(notification)
        Persist one notification and return it with its identifier set.
    list_all()
        Return all notifications, each carrying its identifier.
    mark_read(notification_id)
        Flip ``read`` to True; raise NotificationNotFound for unknown ids.
    subscribe(callback)
        Push the full notification list to ``callback`` on every change.
    unsubscribe(callback)
        Stop pushing changes to ``callback``.
    """

    def append(self, notification: Notification) -> Notification:
        ...

    def list_all(self) -> List[Notification]:
        ...

    def mark_read(self, notification_id: str) -> None:
        ...

    def subscribe(self, callback: NotificationsCallback) -> Callable[[], None]:
        ...

    def unsubscribe(self, callback: NotificationsCallback) -> None:
        ...


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class InMemoryNotificationStore:
    """
    Thread-safe in-memory notification store.

    Concurrency Model
    -----------------
    Reads and writes are guarded by a re-entrant data lock (`threading.RLock`),
    which makes :meth:`append` atomic per call. Every change bumps a version
    counter. Subscribers are invoked *after* the data lock is released, under a
    separate dispatch lock, with the newest snapshot; a push whose version was
    already delivered is skipped. Pushes therefore reach subscribers in order
    and the last one always reflects the current content. A callback may call
    back into the store.

    Notes
    -----
    - Notifications are kept in insertion order.
    - A subscriber is called once immediately on :meth:`subscribe`, then after
      every change. Exceptions raised by a subscriber are logged and do not
      affect the mutation or other subscribers.
    - After :meth:`close`, every operation raises StoreUnavailable.

    Parameters
    ----------
    id_factory
        Callable producing new identifiers (defaults to random UUID hex).
    """

    id_factory: Callable[[], str] = _new_id

    _records: Dict[str, Notification] = field(default_factory=dict, init=False, repr=False)
    _subscribers: List[NotificationsCallback] = field(default_factory=list, init=False, repr=False)
    _closed: bool = field(default=False, init=False, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)
    _dispatch_lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)
    _version: int = field(default=0, init=False, repr=False)
    _delivered_version: int = field(default=0, init=False, repr=False)

    # --- Write API ---
    def append(self, notification: Notification) -> Notification:
        """
        Persist one notification under a freshly assigned identifier.

        Parameters
        ----------
        notification
            Notification to store. Any ``id`` it carries is replaced.

        Returns
        -------
        Notification
            The stored record with ``id`` populated.

        Raises
        ------
        StoreUnavailable
            If the store has been closed.
        """
        with self._lock:
            self._ensure_open()
            new_id = self.id_factory()
            while new_id in self._records:
                new_id = self.id_factory()
            stored = replace(notification, id=new_id)
            self._records[new_id] = stored
            self._version += 1

        self._publish()
        return stored

    def mark_read(self, notification_id: str) -> None:
        """
        Flip ``read`` to True, leaving every other field unchanged.

        Parameters
        ----------
        notification_id
            Identifier assigned by :meth:`append`.

        Raises
        ------
        NotificationNotFound
            If no notification has this identifier; the store is unchanged.
        StoreUnavailable
            If the store has been closed.
        """
        with self._lock:
            self._ensure_open()
            current = self._records.get(notification_id)
            if current is None:
                raise NotificationNotFound(notification_id)
            if current.read:
                return
            self._records[notification_id] = replace(current, read=True)
            self._version += 1

        self._publish()

    def mark_all_read(self) -> int:
        """
        Mark every unread notification as read.

        Returns
        -------
        int
            Number of notifications that changed.
        """
        with self._lock:
            self._ensure_open()
            unread = [k for k, n in self._records.items() if not n.read]
            for key in unread:
                self._records[key] = replace(self._records[key], read=True)
            if unread:
                self._version += 1

        if unread:
            self._publish()
        return len(unread)

    # --- Read API ---
    def list_all(self) -> List[Notification]:
        """
        Return all notifications in insertion order.

        Returns
        -------
        list of Notification
            Snapshot copy; mutating it does not affect the store.
        """
        with self._lock:
            self._ensure_open()
            return list(self._records.values())

    def get(self, notification_id: str) -> Notification:
        with self._lock:
            self._ensure_open()
            current = self._records.get(notification_id)
            if current is None:
                raise NotificationNotFound(notification_id)
            return current

    def unread_count(self) -> int:
        with self._lock:
            self._ensure_open()
            return sum(1 for n in self._records.values() if not n.read)

    # --- Change propagation ---
    def subscribe(self, callback: NotificationsCallback) -> Callable[[], None]:
        """
        Register ``callback`` for change notifications.

        The callback is invoked right away with the current notification
        list, then after every change.

        Parameters
        ----------
        callback
            Called with the full list of notifications.

        Returns
        -------
        callable
            Zero-argument function that unsubscribes ``callback``.
        """
        with self._lock:
            self._ensure_open()
            self._subscribers.append(callback)

        self._publish(only=callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: NotificationsCallback) -> None:
        """Remove ``callback``; unknown callbacks are ignored."""
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def close(self) -> None:
        """
        Take the store offline and drop all subscribers.

        Notes
        -----
        Stored notifications are kept, but every further operation raises
        StoreUnavailable.
        """
        with self._lock:
            self._closed = True
            self._subscribers.clear()

    # --- internals ---
    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreUnavailable("Notification store is closed")

    def _publish(self, only: Optional[NotificationsCallback] = None) -> None:
        """
        Push the current notification list to subscribers.

        With ``only`` set, just that callback receives the current list (the
        initial push of :meth:`subscribe`). Otherwise every subscriber receives
        it, unless a newer or equal version was already pushed. Delivery stops
        early when a callback itself changes the store; that change publishes
        the newer list.
        """
        with self._dispatch_lock:
            with self._lock:
                version = self._version
                if only is None:
                    if version <= self._delivered_version:
                        return
                    self._delivered_version = version
                    subscribers = list(self._subscribers)
                else:
                    subscribers = [only]
                snapshot = list(self._records.values())

            for callback in subscribers:
                if self._version != version:
                    break
                try:
                    callback(list(snapshot))
                except Exception:
                    logger.exception("Notification subscriber %r failed", callback)
