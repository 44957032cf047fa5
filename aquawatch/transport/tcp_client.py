from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from typing import Iterator, Optional

from aquawatch.domain.models import SensorReading
from aquawatch.transport.client_config import HOST, PORT, TIMEOUT_S
from aquawatch.transport.ndjson import decode_message

logger = logging.getLogger(__name__)


@dataclass
class TCPNDJSONClient:
    """
    TCP client that receives NDJSON sensor readings from the telemetry feed.

    This transport adapter connects to a TCP server and yields:
    - raw NDJSON lines via :meth:`lines`
    - decoded readings via :meth:`messages`

    Notes
    -----
    - This class is an infrastructure component; it never classifies values.
    - Malformed lines are logged and skipped in :meth:`messages`.

    Parameters
    ----------
    host
        Remote host address of the NDJSON stream server.
    port
        Remote TCP port.
    timeout_s
        Connection timeout (seconds) used for initial connect only.
    """

    host: str = HOST
    port: int = PORT
    timeout_s: float = TIMEOUT_S

    _sock: Optional[socket.socket] = None

    def connect(self) -> None:
        """
        Open a TCP connection to the configured host/port.

        Notes
        -----
        The timeout applies to the connect only; the socket is then put in
        blocking mode for continuous streaming.
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(self.timeout_s)
        sock.connect((self.host, self.port))
        sock.settimeout(None)  # streaming mode
        self._sock = sock
        logger.info("Connected to telemetry feed at %s:%s", self.host, self.port)

    def lines(self) -> Iterator[str]:
        """
        Yield complete NDJSON lines from the socket stream.

        Raises
        ------
        RuntimeError
            If called before :meth:`connect`.
        ConnectionError
            If the remote side closes the connection.
        """
        if not self._sock:
            raise RuntimeError("Not connected")

        buf = b""
        while True:
            chunk = self._sock.recv(4096)
            if not chunk:
                raise ConnectionError("Server closed connection")
            buf += chunk

            while b"\n" in buf:
                line, buf = buf.split(b"\n", 1)
                s = line.decode("utf-8").strip()
                if s:
                    yield s

    def messages(self) -> Iterator[SensorReading]:
        """
        Yield decoded readings from the NDJSON stream, skipping malformed lines.
        """
        for line in self.lines():
            try:
                yield decode_message(line)
            except ValueError:
                logger.warning("Bad line from telemetry feed: %r", line[:200])
                continue

    def close(self) -> None:
        """Close the underlying socket if open."""
        if self._sock:
            try:
                self._sock.close()
            except OSError:
                logger.debug("Error while closing telemetry socket", exc_info=True)
            self._sock = None
