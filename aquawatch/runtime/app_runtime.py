from __future__ import annotations

import threading
from dataclasses import dataclass
from queue import Queue
from typing import List, Optional

from aquawatch.core.state.notification_store import NotificationStore
from aquawatch.domain.models import SensorReading
from aquawatch.notification.notification_thread import NotificationWorkerThread
from aquawatch.runtime.evaluator_worker_thread import EvaluatorWorkerThread
from aquawatch.runtime.event_bus import EventBus
from aquawatch.runtime.notification_adapter_thread import NotificationAdapterThread
from aquawatch.runtime.readings_receiver_thread import ReadingsReceiverConfig, ReadingsReceiverThread
from aquawatch.services.controller import MonitoringController


@dataclass(frozen=True)
class AppRuntimeConfig:
    """
    Runtime configuration for thread orchestration and transport connection.

    Parameters
    ----------
    readings_host
        TCP host of the telemetry feed.
    readings_port
        TCP port of the telemetry feed.
    reconnect_delay_s
        Delay (seconds) between reconnect attempts after network errors.
    connect_timeout_s
        TCP connect timeout (seconds) used during initial connect.
    """

    readings_host: str
    readings_port: int
    reconnect_delay_s: float = 0.5
    connect_timeout_s: float = 5.0


class AppRuntime:
    """
    Thread supervisor for the monitoring runtime.

    Thread Topology
    ---------------
    1) ReadingsReceiverThread (I/O)
       - owns TCP connection, decodes NDJSON readings
       - pushes readings into `readings_q`

    2) EvaluatorWorkerThread (business logic)
       - consumes readings
       - MonitoringController evaluates, persists and publishes notifications

    3) NotificationAdapterThread (adapter, only when a delivery worker is configured)
       - consumes notifications from the EventBus
       - emits delivery events into NotificationWorkerThread

    Notes
    -----
    - All threads are daemon threads; `stop()` + `join()` are still used for clean shutdown.
    - Backpressure: the receiver and the bus drop newest items when full.
    """

    def __init__(
        self,
        cfg: AppRuntimeConfig,
        controller: MonitoringController,
        bus: EventBus,
        store: NotificationStore,
        notifier: Optional[NotificationWorkerThread] = None,
    ):
        self._cfg = cfg
        self._stop = threading.Event()

        self.readings_q: "Queue[SensorReading]" = Queue(maxsize=5000)

        self._receiver = ReadingsReceiverThread(
            ReadingsReceiverConfig(
                host=cfg.readings_host,
                port=cfg.readings_port,
                reconnect_delay_s=cfg.reconnect_delay_s,
                connect_timeout_s=cfg.connect_timeout_s,
            ),
            readings_q=self.readings_q,
            stop_event=self._stop,
        )

        self._evaluator_worker = EvaluatorWorkerThread(
            controller=controller,
            readings_q=self.readings_q,
            stop_event=self._stop,
        )

        self._notify_adapter: Optional[NotificationAdapterThread] = None
        if notifier is not None:
            self._notify_adapter = NotificationAdapterThread(
                bus=bus,
                store=store,
                notifier=notifier,
                stop_event=self._stop,
            )

    def _threads(self) -> List:
        threads: List = [self._receiver, self._evaluator_worker]
        if self._notify_adapter is not None:
            threads.append(self._notify_adapter)
        return threads

    def start(self) -> None:
        """
        Start all runtime threads: receiver, evaluator worker, then adapter.
        """
        for t in self._threads():
            t.start()

    def stop(self) -> None:
        """
        Stop all runtime threads and wait briefly for shutdown.
        """
        for t in self._threads():
            t.stop()
        for t in self._threads():
            t.join(timeout=2.0)
