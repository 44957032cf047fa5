from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass
from queue import Queue
from typing import Optional

from aquawatch.domain.models import SensorReading
from aquawatch.transport.tcp_client import TCPNDJSONClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReadingsReceiverConfig:
    """
    Configuration for the readings receiver thread.

    Parameters
    ----------
    host
        TCP server host.
    port
        TCP server port.
    reconnect_delay_s
        Delay in seconds between reconnect attempts after a failure.
    connect_timeout_s
        TCP connect timeout (seconds) used during the connect phase.
    """

    host: str
    port: int
    reconnect_delay_s: float = 0.5
    connect_timeout_s: float = 5.0


class ReadingsReceiverThread:
    """
    Dedicated I/O thread that receives decoded readings from a TCP NDJSON stream.

    Responsibilities
    ----------------
    - Own and manage the TCP connection lifecycle.
    - Auto-reconnect on failures until stopped.
    - Push decoded readings into `readings_q` using non-blocking put
      (drops newest reading if the queue is full).

    Stop Behavior
    -------------
    :meth:`stop` sets the shared stop event and closes the TCP client socket
    to break any blocking receive.
    """

    def __init__(
        self,
        cfg: ReadingsReceiverConfig,
        readings_q: "Queue[SensorReading]",
        stop_event: threading.Event,
    ):
        self._cfg = cfg
        self._q = readings_q
        self._stop = stop_event
        self._thread = threading.Thread(target=self._run, name="readings-receiver", daemon=True)
        self._client: Optional[TCPNDJSONClient] = None

    def start(self) -> None:
        if not self._thread.is_alive():
            self._thread.start()

    def stop(self) -> None:
        """
        Signal the receiver thread to stop and close the TCP client if present.
        """
        self._stop.set()
        client = self._client
        if client is not None:
            client.close()

    def join(self, timeout: Optional[float] = 2.0) -> None:
        self._thread.join(timeout=timeout)

    def _run(self) -> None:
        """
        Connection loop: connect, receive readings, and reconnect on errors.
        """
        while not self._stop.is_set():
            try:
                self._client = TCPNDJSONClient(
                    host=self._cfg.host,
                    port=self._cfg.port,
                    timeout_s=self._cfg.connect_timeout_s,
                )
                self._client.connect()

                for reading in self._client.messages():
                    if self._stop.is_set():
                        break
                    try:
                        self._q.put_nowait(reading)
                    except queue.Full:
                        logger.warning("Readings queue full, dropping reading")

            except Exception:
                if self._stop.is_set():
                    break
                logger.exception("Telemetry connection/recv error")
                time.sleep(self._cfg.reconnect_delay_s)

            finally:
                if self._client is not None:
                    self._client.close()
                self._client = None
