"""
Notification evaluator.

This module turns one raw :class:`~aquawatch.domain.models.SensorReading` into
persisted :class:`~aquawatch.domain.models.Notification` records:

- every monitored parameter is normalised and classified,
- each non-optimal classification becomes a notification with a
  parameter-specific message,
- each notification is appended to the store, one write per record.

The evaluator does not suppress repeated notifications: a parameter that stays
in breach produces a new record on every evaluation. :class:`ReAlertPolicy`
is the hook for a minimum re-alert interval and is disabled by default.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from aquawatch.core.state.notification_store import NotificationStore
from aquawatch.core.thresholds.classifier import breach_direction, classify, normalize_reading
from aquawatch.domain.models import Direction, Notification, Parameter, SensorReading, Severity

logger = logging.getLogger(__name__)

_LABELS: Dict[Parameter, str] = {
    Parameter.PH: "pH level",
    Parameter.DO: "Dissolved Oxygen level",
    Parameter.TEMPERATURE: "Temperature",
    Parameter.EC: "EC level",
}

_UNITS: Dict[Parameter, str] = {
    Parameter.PH: "",
    Parameter.DO: " mg/L",
    Parameter.TEMPERATURE: "°C",
    Parameter.EC: " µS/cm",
}

AlertKey = Tuple[Parameter, Severity]


def format_value(value: float) -> str:
    """
    Render a number the way the dashboard prints it.

    Follows JavaScript's ``Number.prototype.toString``: the shortest
    round-tripping digits, integral values without a fractional part
    (``7`` rather than ``7.0``), plain notation for magnitudes in
    ``[1e-6, 1e21)`` and ``1e-7`` / ``1.5e+21`` style exponents outside it.
    """
    if value == 0:
        return "0"
    if not math.isfinite(value):
        return {math.inf: "Infinity", -math.inf: "-Infinity"}.get(value, "NaN")

    sign = "-" if value < 0 else ""
    mantissa, _, exp = repr(abs(value)).partition("e")
    whole, _, frac = mantissa.partition(".")
    digits = whole + frac
    point = len(whole) + int(exp or 0)

    stripped = digits.lstrip("0")
    point -= len(digits) - len(stripped)
    digits = stripped.rstrip("0")
    k, n = len(digits), point

    if k <= n <= 21:
        return sign + digits + "0" * (n - k)
    if 0 < n <= 21:
        return sign + digits[:n] + "." + digits[n:]
    if -6 < n <= 0:
        return sign + "0." + "0" * -n + digits

    e = n - 1
    head = digits[0] + ("." + digits[1:] if k > 1 else "")
    return f"{sign}{head}e{'+' if e > 0 else '-'}{abs(e)}"


def iso_timestamp(ts: datetime) -> str:
    """
    Convert a datetime to ISO-8601 with millisecond precision.

    Timezone-aware values are converted to UTC and rendered with a ``Z``
    suffix; naive values are rendered as-is.
    """
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
        return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return ts.isoformat(timespec="milliseconds")


def build_message(parameter: Parameter, value: float, severity: Severity, direction: Direction) -> str:
    """
    Build the human-readable text for one breach.

    Parameters
    ----------
    parameter
        Breaching parameter.
    value
        Normalised value (weight in kilograms).
    severity
        Non-optimal severity.
    direction
        Side of the band that was crossed.

    Returns
    -------
    str
        Message such as ``"pH level is critically low: 5.2"``.
    """
    if severity is Severity.REFILL:
        return f"Feed level is low ({value:.2f} kg), refill needed"

    label = _LABELS[parameter]
    shown = f"{format_value(value)}{_UNITS[parameter]}"

    if severity is Severity.CRITICAL:
        return f"{label} is critically {direction.value}: {shown}"

    side = "below" if direction is Direction.LOW else "above"
    return f"{label} is {side} optimal range: {shown}"


@dataclass
class ReAlertPolicy:
    """
    Minimum interval between two notifications for the same breach.

    A breach is identified by ``(parameter, severity)``. With the default
    ``min_interval`` of zero the policy lets every notification through and
    keeps no state.

    Parameters
    ----------
    min_interval
        Suppress a breach emitted less than this long ago (measured on
        evaluation timestamps).
    """

    min_interval: timedelta = timedelta(0)

    _last_emitted: Dict[AlertKey, datetime] = field(default_factory=dict, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def enabled(self) -> bool:
        return self.min_interval > timedelta(0)

    def should_emit(self, key: AlertKey, ts: datetime) -> bool:
        if not self.enabled:
            return True
        with self._lock:
            last = self._last_emitted.get(key)
            return last is None or (ts - last) >= self.min_interval

    def record(self, key: AlertKey, ts: datetime) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._last_emitted[key] = ts


@dataclass
class NotificationEvaluator:
    """
    Evaluate-and-emit engine for sensor readings.

    Failure Semantics
    -----------------
    Store exceptions (e.g. StoreUnavailable) propagate unchanged. Notifications
    appended before the failure stay appended; there is no retry and no
    rollback. Retrying at reading level is the caller's decision.

    Parameters
    ----------
    store
        Notification sink; only ``append`` is used.
    realert
        Optional re-alert interval policy (disabled by default).
    """

    store: NotificationStore
    realert: ReAlertPolicy = field(default_factory=ReAlertPolicy)

    def build_notifications(self, reading: SensorReading, now: Optional[datetime] = None) -> List[Notification]:
        """
        Build the notifications a reading calls for, without persisting them.

        Parameters
        ----------
        reading
            Raw sensor reading.
        now
            Timestamp stamped on every notification. Defaults to current UTC time.

        Returns
        -------
        list of Notification
            Unsaved notifications (``id`` is None), in table order.
        """
        ts = now or datetime.now(timezone.utc)
        return [n for _, n in self._candidates(reading, ts)]

    def evaluate(self, reading: SensorReading, now: Optional[datetime] = None) -> List[Notification]:
        """
        Classify a reading and persist a notification for every breach.

        Parameters
        ----------
        reading
            Raw sensor reading.
        now
            Evaluation timestamp. If None, uses current UTC time.

        Returns
        -------
        list of Notification
            Newly stored notifications with identifiers populated.
        """
        ts = now or datetime.now(timezone.utc)
        created: List[Notification] = []

        for key, candidate in self._candidates(reading, ts):
            if not self.realert.should_emit(key, ts):
                logger.debug("Suppressed repeated %s alert for %s", key[1].value, key[0].value)
                continue

            stored = self.store.append(candidate)
            self.realert.record(key, ts)
            created.append(stored)
            logger.info("Notification %s [%s] %s", stored.id, stored.threshold.value, stored.message)

        return created

    def _candidates(self, reading: SensorReading, ts: datetime) -> List[Tuple[AlertKey, Notification]]:
        stamp = iso_timestamp(ts)
        out: List[Tuple[AlertKey, Notification]] = []

        for parameter, value in normalize_reading(reading).items():
            severity = classify(parameter, value)
            if severity is Severity.OPTIMAL:
                continue

            direction = breach_direction(parameter, value, severity)
            out.append(
                (
                    (parameter, severity),
                    Notification(
                        parameter=parameter.record_name,
                        value=value,
                        threshold=severity,
                        message=build_message(parameter, value, severity, direction),
                        timestamp=stamp,
                        read=False,
                    ),
                )
            )

        return out
