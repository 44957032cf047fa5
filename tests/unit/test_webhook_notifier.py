"""
Unit tests for aquawatch.notification.webhook_notifier.

These tests validate webhook delivery using mocked HTTP calls:
- correct request parameters passed to requests.post
- Authorization header handling
- idempotency key, severity and parameter headers derived from the event
- HTTP error propagation via raise_for_status()

No real network requests are made.
"""

from __future__ import annotations

from typing import Any, Dict, List
from unittest.mock import MagicMock

import pytest
import requests

from aquawatch.notification.base import DeliveryEvent
from aquawatch.notification.webhook_notifier import WebhookConfig, WebhookNotifier, notification_id_of

PAYLOAD = {"type": "notification", "notification": {"id": "n-42", "parameter": "pH"}}


def _mk_event(payload: Dict[str, Any] = PAYLOAD, **overrides) -> DeliveryEvent:
    fields = dict(
        type="notification",
        payload=payload,
        severity="critical",
        source="pH",
        ts="2026-01-01T10:00:00.000Z",
    )
    fields.update(overrides)
    return DeliveryEvent(**fields)


def _capture_post(monkeypatch) -> List[Dict[str, Any]]:
    calls: List[Dict[str, Any]] = []
    response = MagicMock(status_code=200)

    def fake_post(url, json, headers, timeout, verify):
        calls.append(dict(url=url, json=json, headers=headers, timeout=timeout, verify=verify))
        return response

    monkeypatch.setattr("requests.post", fake_post)
    return calls


def test_posts_payload_with_delivery_headers(monkeypatch) -> None:
    calls = _capture_post(monkeypatch)

    WebhookNotifier(WebhookConfig(url="https://example.com/webhook", timeout_s=3.0, verify_tls=False)).notify(_mk_event())

    (call,) = calls
    assert call["url"] == "https://example.com/webhook"
    assert call["json"] == PAYLOAD
    assert call["timeout"] == 3.0
    assert call["verify"] is False
    assert call["headers"] == {
        "Content-Type": "application/json",
        "Idempotency-Key": "n-42",
        "X-AquaWatch-Severity": "critical",
        "X-AquaWatch-Parameter": "pH",
    }


def test_retried_delivery_reuses_idempotency_key(monkeypatch) -> None:
    calls = _capture_post(monkeypatch)
    notifier = WebhookNotifier(WebhookConfig(url="https://example.com/webhook"))

    notifier.notify(_mk_event())
    notifier.notify(_mk_event())

    assert [c["headers"]["Idempotency-Key"] for c in calls] == ["n-42", "n-42"]


def test_auth_header_is_forwarded(monkeypatch) -> None:
    calls = _capture_post(monkeypatch)

    WebhookNotifier(WebhookConfig(url="https://example.com/webhook", auth_header="Bearer TOKEN")).notify(_mk_event())

    assert calls[0]["headers"]["Authorization"] == "Bearer TOKEN"


def test_event_without_id_or_severity_sends_only_base_headers(monkeypatch) -> None:
    calls = _capture_post(monkeypatch)
    event = _mk_event(payload={"type": "notification"}, severity=None, source=None)

    WebhookNotifier(WebhookConfig(url="https://example.com/webhook")).notify(event)

    assert notification_id_of(event) is None
    assert calls[0]["headers"] == {"Content-Type": "application/json"}


def test_propagates_http_error(monkeypatch) -> None:
    mock_response = MagicMock()
    mock_response.raise_for_status.side_effect = requests.HTTPError("HTTP 500")
    monkeypatch.setattr("requests.post", lambda *args, **kwargs: mock_response)

    with pytest.raises(requests.HTTPError):
        WebhookNotifier(WebhookConfig(url="https://example.com/webhook")).notify(_mk_event())
