from __future__ import annotations

import logging
from functools import wraps

from flask import Flask, jsonify, request

from aquawatch.core.errors import NotificationNotFound, StoreUnavailable
from aquawatch.core.state.notification_store import InMemoryNotificationStore
from aquawatch.core.thresholds.threshold_table import threshold_table_as_dict
from aquawatch.domain.models import SensorReading
from aquawatch.services.controller import MonitoringController

logger = logging.getLogger(__name__)


def create_app(store: InMemoryNotificationStore, controller: MonitoringController, token: str) -> Flask:
    """
    Build the Flask application that exposes the notification history.

    Parameters
    ----------
    store
        Notification store read and mutated by the routes.
    controller
        Controller used to evaluate readings posted to ``/api/readings``.
    token
        Expected bearer token for every ``/api/*`` route.

    Notes
    -----
    ``/health`` is unauthenticated. A missing or malformed ``Authorization``
    header yields 401, a wrong token 403.
    """
    app = Flask(__name__)

    def require_bearer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth = request.headers.get("Authorization", "")
            if auth.startswith("Bearer "):
                if auth.removeprefix("Bearer ").strip() == token:
                    return fn(*args, **kwargs)
                return jsonify({"error": "invalid token"}), 403
            return jsonify({"error": "unauthorized"}), 401
        return wrapper

    @app.errorhandler(NotificationNotFound)
    def _not_found(exc: NotificationNotFound):
        return jsonify({"error": str(exc)}), 404

    @app.errorhandler(StoreUnavailable)
    def _unavailable(exc: StoreUnavailable):
        logger.error("Notification store unavailable: %s", exc)
        return jsonify({"error": "notification store unavailable"}), 503

    @app.get("/health")
    def health():
        return jsonify({"status": "ok"}), 200

    @app.get("/api/thresholds")
    @require_bearer
    def thresholds():
        return jsonify(threshold_table_as_dict()), 200

    @app.get("/api/notifications")
    @require_bearer
    def list_notifications():
        items = store.list_all()
        unread = sum(1 for n in items if not n.read)
        newest_first = [n.to_record() for n in reversed(items)]
        return jsonify({"count": len(items), "unread": unread, "notifications": newest_first}), 200

    @app.get("/api/notifications/unread-count")
    @require_bearer
    def unread_count():
        return jsonify({"unread": store.unread_count()}), 200

    @app.post("/api/notifications/read-all")
    @require_bearer
    def mark_all_read():
        return jsonify({"marked": store.mark_all_read()}), 200

    @app.post("/api/notifications/<notification_id>/read")
    @require_bearer
    def mark_read(notification_id: str):
        store.mark_read(notification_id)
        return jsonify({"status": "ok", "id": notification_id}), 200

    @app.post("/api/readings")
    @require_bearer
    def post_reading():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "reading must be a JSON object"}), 400

        try:
            reading = SensorReading.from_mapping(data)
        except ValueError as exc:
            return jsonify({"error": f"invalid reading: {exc}"}), 400

        created = controller.handle_reading(reading)
        return jsonify({"created": [n.to_record() for n in created]}), 201

    return app
