from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import requests

from aquawatch.notification.base import DeliveryEvent

logger = logging.getLogger(__name__)

IDEMPOTENCY_HEADER = "Idempotency-Key"
SEVERITY_HEADER = "X-AquaWatch-Severity"
PARAMETER_HEADER = "X-AquaWatch-Parameter"


@dataclass(frozen=True)
class WebhookConfig:
    """
    Target of outbound notification delivery.

    Parameters
    ----------
    url
        Endpoint receiving one JSON POST per stored notification.
    timeout_s
        Per-request timeout in seconds.
    verify_tls
        Whether to verify TLS certificates.
    auth_header
        Full Authorization header value (``"Bearer ..."``), if the receiver
        requires one.
    """

    url: str
    timeout_s: float = 2.0
    verify_tls: bool = True
    auth_header: Optional[str] = None


def notification_id_of(event: DeliveryEvent) -> Optional[str]:
    """Return the stored notification id carried in a delivery payload, if any."""
    record = event.payload.get("notification")
    if isinstance(record, dict) and record.get("id") is not None:
        return str(record["id"])
    return None


class WebhookNotifier:
    """
    POST notification payloads to a webhook receiver.

    The delivery worker retries failed sends, so one notification may reach
    the receiver more than once. Every request therefore carries the stored
    notification id as ``Idempotency-Key``; receivers drop repeats by that
    key. Severity and parameter are mirrored into headers so a receiver can
    route without parsing the body.
    """

    def __init__(self, cfg: WebhookConfig):
        self._cfg = cfg

    def headers_for(self, event: DeliveryEvent) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._cfg.auth_header:
            headers["Authorization"] = self._cfg.auth_header

        key = notification_id_of(event)
        if key is not None:
            headers[IDEMPOTENCY_HEADER] = key
        if event.severity:
            headers[SEVERITY_HEADER] = event.severity
        if event.source:
            headers[PARAMETER_HEADER] = event.source
        return headers

    def notify(self, event: DeliveryEvent) -> None:
        """
        Deliver one event.

        Raises
        ------
        requests.HTTPError
            If the receiver answers with an error status.
        requests.RequestException
            For network-related errors.
        """
        response = requests.post(
            self._cfg.url,
            json=event.payload,
            headers=self.headers_for(event),
            timeout=self._cfg.timeout_s,
            verify=self._cfg.verify_tls,
        )
        response.raise_for_status()
        logger.debug("Webhook accepted %s (HTTP %s)", notification_id_of(event), response.status_code)
