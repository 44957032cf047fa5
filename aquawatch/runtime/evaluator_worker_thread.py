from __future__ import annotations

import logging
import threading
from queue import Empty, Queue
from typing import Optional

from aquawatch.domain.models import SensorReading
from aquawatch.services.controller import MonitoringController

logger = logging.getLogger(__name__)


class EvaluatorWorkerThread:
    """
    Worker thread for reading evaluation.

    Responsibilities
    ----------------
    - Consume decoded sensor readings from a queue.
    - Delegate processing to `MonitoringController.handle_reading(...)`, which
      evaluates thresholds, persists notifications and publishes them.

    Concurrency Model
    -----------------
    - The thread polls the queue with a timeout to remain responsive to stop signals.
    - An exception while handling one reading (e.g. StoreUnavailable) is logged
      and the worker continues with the next reading; the failed reading is
      not retried.

    Parameters
    ----------
    controller
        Monitoring controller used to process incoming readings.
    readings_q
        Queue of decoded readings.
    stop_event
        Thread stop signal. When set, the worker exits its loop.
    """

    def __init__(
        self,
        controller: MonitoringController,
        readings_q: "Queue[SensorReading]",
        stop_event: threading.Event,
    ):
        self._controller = controller
        self._q = readings_q
        self._stop = stop_event
        self._thread = threading.Thread(target=self._run, name="evaluator-worker", daemon=True)

    def start(self) -> None:
        if not self._thread.is_alive():
            self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def join(self, timeout: Optional[float] = 2.0) -> None:
        self._thread.join(timeout=timeout)

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                reading = self._q.get(timeout=0.5)
            except Empty:
                continue

            try:
                self._controller.handle_reading(reading)
            except Exception:
                logger.exception("Evaluating reading failed")
