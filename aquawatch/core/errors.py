"""
Error types raised by notification stores.

Malformed numeric input has no error type here: the parsing
contract degrades it to ``0`` instead of raising.
"""

from __future__ import annotations


class StoreError(Exception):
    """Base class for notification store failures."""


class StoreUnavailable(StoreError):
    """The store cannot serve requests (closed, unreachable, ...)."""


class NotificationNotFound(StoreError, KeyError):
    """
    No notification exists with the requested identifier.

    Parameters
    ----------
    notification_id
        The identifier that was looked up.
    """

    def __init__(self, notification_id: str):
        super().__init__(notification_id)
        self.notification_id = notification_id

    def __str__(self) -> str:
        return f"Notification not found: {self.notification_id}"
