from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from aquawatch.core.config.yaml_config import AppConfig, load_app_config
from aquawatch.core.notify.evaluator import NotificationEvaluator, ReAlertPolicy
from aquawatch.core.state.notification_store import InMemoryNotificationStore, NotificationStore
from aquawatch.notification.notification_thread import NotificationWorkerThread
from aquawatch.notification.webhook_notifier import WebhookConfig, WebhookNotifier
from aquawatch.runtime.app_runtime import AppRuntime, AppRuntimeConfig
from aquawatch.runtime.event_bus import EventBus
from aquawatch.services.controller import MonitoringController

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class AppWiring:
    """Everything the entry point needs to run the system."""
    config: AppConfig
    store: InMemoryNotificationStore
    evaluator: NotificationEvaluator
    controller: MonitoringController
    notifier: Optional[NotificationWorkerThread]
    runtime: AppRuntime


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def build_evaluator(cfg: AppConfig, store: NotificationStore) -> NotificationEvaluator:
    realert = ReAlertPolicy(min_interval=timedelta(seconds=cfg.evaluator.min_realert_interval_s))
    return NotificationEvaluator(store=store, realert=realert)


def build_notifier(cfg: AppConfig) -> Optional[NotificationWorkerThread]:
    """
    Build the webhook delivery worker.

    Returns None when no webhook is configured; notifications are then only
    stored and served by the HTTP API.
    """
    if cfg.webhook is None:
        return None

    auth_header = cfg.webhook.auth_header
    if auth_header and not auth_header.startswith("Bearer "):
        auth_header = f"Bearer {auth_header}"

    return NotificationWorkerThread(
        notifiers=[
            WebhookNotifier(
                WebhookConfig(
                    url=cfg.webhook.url,
                    auth_header=auth_header,
                    timeout_s=cfg.webhook.timeout_s,
                    verify_tls=cfg.webhook.verify_tls,
                )
            )
        ]
    )


def build_app_system(config_path: Optional[str] = None) -> AppWiring:
    cfg = load_app_config(config_path)
    configure_logging(cfg.logging.level)

    # --- STATE ---
    store = InMemoryNotificationStore()

    # --- EVALUATION ---
    evaluator = build_evaluator(cfg, store)

    # --- NOTIFICATIONS ---
    notifier = build_notifier(cfg)

    # --- EVENT BUS ---
    bus = EventBus()

    # --- CONTROLLER ---
    controller = MonitoringController(evaluator=evaluator, bus=bus if notifier is not None else None)

    # --- RUNTIME ---
    runtime = AppRuntime(
        cfg=AppRuntimeConfig(
            readings_host=cfg.transport.host,
            readings_port=cfg.transport.port,
            connect_timeout_s=cfg.transport.timeout_s,
            reconnect_delay_s=cfg.transport.reconnect_delay_s,
        ),
        controller=controller,
        bus=bus,
        store=store,
        notifier=notifier,
    )

    return AppWiring(
        config=cfg,
        store=store,
        evaluator=evaluator,
        controller=controller,
        notifier=notifier,
        runtime=runtime,
    )
