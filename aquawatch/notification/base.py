from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol


@dataclass(frozen=True)
class DeliveryEvent:
    """
    Outbound message handed to one or more notifiers.

    A 'DeliveryEvent' represents *what should be communicated* about a stored
    notification, not *how* it is delivered.

    Parameters
    ----------
    type
        Event type identifier (e.g., "notification").
    payload
        Structured JSON-serialisable body.
    severity
        Optional severity label (e.g., "warning", "critical", "refill").
    source
        Optional parameter name the event concerns.
    ts
        Optional ISO-8601 timestamp string.
    """

    type: str
    payload: Dict[str, Any]
    severity: Optional[str] = None
    source: Optional[str] = None
    ts: Optional[str] = None


class Notifier(Protocol):
    """
    Protocol interface for outbound delivery.

    Any class with a ``notify(event)`` method qualifies, which keeps the
    delivery worker easy to test with fakes.
    """

    def notify(self, event: DeliveryEvent) -> None:
        ...
