"""
Domain models and enums.

This module defines the core domain-level types used across the system:
- Monitored parameters, severity bands and breach directions
- Raw sensor readings as they arrive from the telemetry feed
- Notification records produced by the evaluator and persisted by a store

These are designed as immutable (frozen) dataclasses where appropriate to
support safe sharing across layers and threads.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class Parameter(str, Enum):
    """
    Physical quantity monitored in the tank.

    The member value is the key used by the threshold table.

    Members
    -------
    PH : str
        Acidity of the water.
    DO : str
        Dissolved oxygen (mg/L).
    TEMPERATURE : str
        Water temperature (deg C).
    EC : str
        Electrical conductivity (uS/cm).
    WEIGHT : str
        Remaining feed weight (grams on the wire, kilograms once normalised).
    """

    PH = "pH"
    DO = "DO"
    TEMPERATURE = "temperature"
    EC = "EC"
    WEIGHT = "weight"

    @property
    def record_name(self) -> str:
        """Name written into the ``parameter`` field of stored notifications."""
        return _RECORD_NAMES[self]


_RECORD_NAMES: Dict[Parameter, str] = {
    Parameter.PH: "pH",
    Parameter.DO: "DO",
    Parameter.TEMPERATURE: "Temperature",
    Parameter.EC: "EC",
    Parameter.WEIGHT: "Weight",
}


class Severity(str, Enum):
    """
    Severity band assigned to a parameter value.

    Members
    -------
    OPTIMAL : str
        Value is acceptable; no notification is produced.
    WARNING : str
        Value left the warning band; attention required.
    CRITICAL : str
        Value left the critical band; immediate intervention required.
    REFILL : str
        Feed weight is at or below the refill ceiling.
    """

    OPTIMAL = "optimal"
    WARNING = "warning"
    CRITICAL = "critical"
    REFILL = "refill"


class Direction(str, Enum):
    """Side of a band that a breaching value fell on."""

    LOW = "low"
    HIGH = "high"


@dataclass(frozen=True)
class SensorReading:
    """
    One snapshot of raw instrument values.

    Field values are kept exactly as received. The upstream feed may deliver
    decorated strings (e.g. ``'7.2}'``), plain numbers or nothing at all;
    turning them into numbers is the job of the classifier's parsing contract.

    Parameters
    ----------
    ph
        Raw pH value.
    dissolved_oxygen
        Raw dissolved oxygen value (mg/L).
    temperature
        Raw water temperature (deg C).
    ec
        Raw electrical conductivity.
    weight
        Raw feed weight in grams.
    timestamp
        Time the reading was captured, when the feed provides one.
    """

    ph: Any = None
    dissolved_oxygen: Any = None
    temperature: Any = None
    ec: Any = None
    weight: Any = None
    timestamp: Optional[datetime] = None

    def raw_value(self, parameter: Parameter) -> Any:
        """Return the raw field backing ``parameter``."""
        return getattr(self, _READING_FIELDS[parameter])

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "SensorReading":
        """
        Build a reading from a key/value mapping.

        Keys are matched after stripping quote and brace characters and
        lowercasing, so both ``{"pH": "7"}`` and the decorated form
        ``{'{"pH"': '7', '"DO"': '5'}`` are understood. Unknown keys are ignored.

        Parameters
        ----------
        raw
            Mapping produced by the telemetry feed or an HTTP client.

        Returns
        -------
        SensorReading
            Reading with raw values copied as-is.

        Raises
        ------
        ValueError
            If a ``timestamp`` is present but is not an ISO-8601 string.
        """
        fields: Dict[str, Any] = {}
        timestamp: Optional[datetime] = None

        for key, value in raw.items():
            name = _normalize_key(str(key))
            if name == "timestamp":
                timestamp = _parse_timestamp(value)
                continue
            parameter = _KEY_ALIASES.get(name)
            if parameter is not None:
                fields[_READING_FIELDS[parameter]] = value

        return cls(timestamp=timestamp, **fields)


_READING_FIELDS: Dict[Parameter, str] = {
    Parameter.PH: "ph",
    Parameter.DO: "dissolved_oxygen",
    Parameter.TEMPERATURE: "temperature",
    Parameter.EC: "ec",
    Parameter.WEIGHT: "weight",
}

_KEY_ALIASES: Dict[str, Parameter] = {
    "ph": Parameter.PH,
    "do": Parameter.DO,
    "do_level": Parameter.DO,
    "dissolved_oxygen": Parameter.DO,
    "temp": Parameter.TEMPERATURE,
    "temperature": Parameter.TEMPERATURE,
    "ec": Parameter.EC,
    "weight": Parameter.WEIGHT,
}


def _normalize_key(key: str) -> str:
    return key.replace('"', "").replace("{", "").replace("}", "").strip().lower()


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    text = str(value).strip()
    # datetime.fromisoformat() rejects a trailing "Z" on older interpreters.
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


@dataclass(frozen=True)
class Notification:
    """
    Record of one parameter breaching one severity band at one point in time.

    Parameters
    ----------
    parameter
        Record name of the parameter (``pH``, ``DO``, ``Temperature``, ``EC``, ``Weight``).
    value
        Numeric value at time of breach (weight in kilograms).
    threshold
        Severity band that was breached (never ``OPTIMAL``).
    message
        Human-readable description.
    timestamp
        ISO-8601 creation time.
    read
        Whether a user has acknowledged the notification.
    id
        Identifier assigned by the store; ``None`` until persisted.
    """

    parameter: str
    value: float
    threshold: Severity
    message: str
    timestamp: str
    read: bool = False
    id: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        """
        Serialise into the stored record shape.

        Returns
        -------
        dict
            ``{parameter, value, threshold, message, timestamp, read}`` plus
            ``id`` when one has been assigned.
        """
        record: Dict[str, Any] = {
            "parameter": self.parameter,
            "value": self.value,
            "threshold": self.threshold.value,
            "message": self.message,
            "timestamp": self.timestamp,
            "read": self.read,
        }
        if self.id is not None:
            record["id"] = self.id
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any], id: Optional[str] = None) -> "Notification":
        """Inverse of :meth:`to_record`; an explicit ``id`` wins over the record's."""
        return cls(
            parameter=str(record["parameter"]),
            value=float(record["value"]),
            threshold=Severity(record["threshold"]),
            message=str(record["message"]),
            timestamp=str(record["timestamp"]),
            read=bool(record.get("read", False)),
            id=id if id is not None else record.get("id"),
        )
