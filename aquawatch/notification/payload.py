from __future__ import annotations

from collections import Counter
from typing import Any, Dict, Sequence

from aquawatch.domain.models import Notification


def build_notification_webhook_payload(notification: Notification, history: Sequence[Notification]) -> Dict[str, Any]:
    """
    Build a webhook payload for a new notification plus store totals.

    The payload includes:
    - "notification": the stored record (including its id)
    - "totals": counters computed over the full notification history

    Parameters
    ----------
    notification
        Notification that triggered the webhook.
    history
        Current content of the store (``store.list_all()``).

    Returns
    -------
    dict
        Webhook payload dictionary with keys: "type", "notification", and "totals".
    """
    by_threshold = Counter(n.threshold.value for n in history)
    by_parameter = Counter(n.parameter for n in history)

    totals_payload = {
        "notifications_total": len(history),
        "notifications_unread": sum(1 for n in history if not n.read),
        "counts_by_threshold": {str(k): int(v) for k, v in by_threshold.items()},
        "counts_by_parameter": {str(k): int(v) for k, v in by_parameter.items()},
    }

    return {
        "type": "notification",
        "notification": notification.to_record(),
        "totals": totals_payload,
    }
