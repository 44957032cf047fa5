from __future__ import annotations

import json
from typing import Any, Dict, Iterator

from aquawatch.domain.models import SensorReading

MESSAGE_TYPE = "sensor_reading"


def _decode_obj(obj: Dict[str, Any]) -> SensorReading:
    """
    Decode a message dictionary into a sensor reading.

    The ``type`` field is optional; when present it must be ``"sensor_reading"``.
    Parameter fields are copied raw (see :meth:`SensorReading.from_mapping`),
    so decorated values survive transport untouched.

    Parameters
    ----------
    obj
        JSON-decoded dictionary.

    Returns
    -------
    SensorReading
        Decoded domain object.

    Raises
    ------
    ValueError
        If ``type`` is unknown or the timestamp is not ISO-8601.
    """
    t = obj.get("type", MESSAGE_TYPE)
    if t != MESSAGE_TYPE:
        raise ValueError(f"Unknown message type: {t}")

    fields = {k: v for k, v in obj.items() if k != "type"}
    return SensorReading.from_mapping(fields)


def iter_json_objects(text: str) -> Iterator[Dict[str, Any]]:
    """
    Yield one or more JSON objects found in a string.

    This function is robust against inputs where multiple JSON objects are
    accidentally concatenated without delimiters, e.g.::

        '{"a": 1}{"b": 2}'

    Only dictionary objects are yielded (non-dict JSON like lists/strings are ignored).

    Parameters
    ----------
    text
        Input string potentially containing one or more JSON objects.

    Yields
    ------
    dict
        Parsed JSON objects (dictionaries) found in the input.
    """
    s = text.strip()
    if not s:
        return

    dec = json.JSONDecoder()
    i = 0
    n = len(s)

    while i < n:
        while i < n and s[i].isspace():
            i += 1
        if i >= n:
            break

        obj, end = dec.raw_decode(s, i)
        if isinstance(obj, dict):
            yield obj
        i = end


def decode_message(line: str) -> SensorReading:
    """
    Decode an NDJSON line into a sensor reading.

    If the sender concatenates multiple JSON objects into a single line, the
    **first valid JSON object** is decoded.

    Raises
    ------
    ValueError
        If no JSON object is found or if the message type is unknown.
    """
    for obj in iter_json_objects(line):
        return _decode_obj(obj)

    raise ValueError("No JSON object found in line")


def encode_message(reading: SensorReading) -> str:
    """Encode a reading as one NDJSON line (without the trailing newline)."""
    obj: Dict[str, Any] = {
        "type": MESSAGE_TYPE,
        "pH": reading.ph,
        "DO": reading.dissolved_oxygen,
        "Temp": reading.temperature,
        "EC": reading.ec,
        "Weight": reading.weight,
    }
    if reading.timestamp is not None:
        obj["timestamp"] = reading.timestamp.isoformat()
    return json.dumps(obj, ensure_ascii=False)
