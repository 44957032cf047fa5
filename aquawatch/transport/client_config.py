"""
Default TCP endpoint of the telemetry feed.

These values are used by :class:`~aquawatch.transport.tcp_client.TCPNDJSONClient`
when no explicit arguments are given; the YAML config normally overrides them.

Attributes
----------
HOST
    Default telemetry host.
PORT
    Default telemetry TCP port.
TIMEOUT_S
    Default connection timeout (seconds).
"""

from __future__ import annotations

HOST: str = "127.0.0.1"
PORT: int = 9009
TIMEOUT_S: float = 5.0
