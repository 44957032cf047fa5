"""
Threshold classification.

Pure functions mapping a parameter value to a severity band using
:data:`~aquawatch.core.thresholds.threshold_table.THRESHOLD_TABLE`.

Parsing contract
----------------
Raw values may arrive as decorated strings left over from an upstream
serialisation quirk (``'7.2}'``, ``'"5.1'``). :func:`parse_sensor_value`
strips quote and brace characters, parses the leading floating-point literal
and falls back to ``0`` on anything it cannot read. Malformed input therefore
shows up as an alarming "value is 0" classification instead of an exception.
"""

from __future__ import annotations

import logging
import math
import numbers
import re
from typing import Any, Dict, Union

from aquawatch.core.thresholds.threshold_table import MONITORED_PARAMETERS, THRESHOLD_TABLE
from aquawatch.domain.models import Direction, Parameter, SensorReading, Severity

logger = logging.getLogger(__name__)

GRAMS_PER_KILOGRAM = 1000.0

_DECORATION = re.compile(r'["{}]')
_FLOAT_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

ParameterLike = Union[Parameter, str]


def parse_sensor_value(raw: Any) -> float:
    """
    Convert a raw sensor value into a finite float.

    Parameters
    ----------
    raw
        Number, decorated string, or None.

    Returns
    -------
    float
        Parsed value, or ``0.0`` when the input is missing, a boolean,
        non-finite or has no leading numeric literal.
    """
    if raw is None:
        return 0.0

    if isinstance(raw, bool):
        logger.debug("Boolean sensor value %r, using 0", raw)
        return 0.0

    if isinstance(raw, numbers.Real):
        value = float(raw)
    else:
        text = _DECORATION.sub("", str(raw)).strip()
        m = _FLOAT_PREFIX.match(text)
        if m is None:
            logger.debug("Unparsable sensor value %r, using 0", raw)
            return 0.0
        value = float(m.group(0))

    if not math.isfinite(value):
        logger.debug("Non-finite sensor value %r, using 0", raw)
        return 0.0
    return value


def grams_to_kilograms(raw: Any) -> float:
    """Parse a raw feed weight in grams and return kilograms."""
    return parse_sensor_value(raw) / GRAMS_PER_KILOGRAM


def normalize_reading(reading: SensorReading) -> Dict[Parameter, float]:
    """
    Apply the parsing contract to every monitored field of a reading.

    Feed weight is converted from grams to kilograms so it can be compared
    with the refill ceiling.

    Parameters
    ----------
    reading
        Raw sensor reading.

    Returns
    -------
    dict[Parameter, float]
        Parsed values in table order.
    """
    values: Dict[Parameter, float] = {}
    for parameter in MONITORED_PARAMETERS:
        raw = reading.raw_value(parameter)
        if parameter is Parameter.WEIGHT:
            values[parameter] = grams_to_kilograms(raw)
        else:
            values[parameter] = parse_sensor_value(raw)
    return values


def classify(parameter: ParameterLike, value: Any) -> Severity:
    """
    Classify one parameter value into a severity band.

    Two-sided parameters are checked against the critical band first, then
    the warning band, so a value outside both is reported as critical only.
    Feed weight (kilograms) is at refill severity when at or below the
    refill ceiling.

    Parameters
    ----------
    parameter
        Parameter member or its table name (``"pH"``, ``"DO"``, ...).
    value
        Value to classify; passed through :func:`parse_sensor_value` so
        missing or malformed input is treated as ``0``.

    Returns
    -------
    Severity
        Classification for the value.

    Raises
    ------
    ValueError
        If ``parameter`` is not a monitored parameter name.
    """
    entry = THRESHOLD_TABLE[Parameter(parameter)]
    v = parse_sensor_value(value)

    if entry.refill is not None:
        if entry.refill.max is not None and v <= entry.refill.max:
            return Severity.REFILL
        return Severity.OPTIMAL

    if entry.critical is not None and not entry.critical.contains(v):
        return Severity.CRITICAL
    if entry.warning is not None and not entry.warning.contains(v):
        return Severity.WARNING
    return Severity.OPTIMAL


def breach_direction(parameter: ParameterLike, value: Any, severity: Severity) -> Direction:
    """
    Tell whether a breaching value is low or high.

    The value is compared with the midpoint of the band that was violated.
    Bands with a single defined side (dissolved oxygen, refill) always
    resolve to that side.

    Parameters
    ----------
    parameter
        Parameter member or table name.
    value
        Breaching value (already normalised).
    severity
        Severity returned by :func:`classify` for this value.

    Returns
    -------
    Direction
        ``LOW`` or ``HIGH``.

    Raises
    ------
    ValueError
        If ``severity`` is optimal or the parameter defines no such band.
    """
    entry = THRESHOLD_TABLE[Parameter(parameter)]
    band = entry.band_for(severity)
    if severity is Severity.OPTIMAL or band is None:
        raise ValueError(f"{Parameter(parameter).value} has no {severity.value} breach")

    if severity is Severity.REFILL or band.max is None:
        return Direction.LOW
    if band.min is None:
        return Direction.HIGH

    midpoint = (band.min + band.max) / 2.0
    return Direction.LOW if parse_sensor_value(value) < midpoint else Direction.HIGH
