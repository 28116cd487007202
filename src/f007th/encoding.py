"""Payload encoding for the two wire formats.

``encode`` writes a complete document into the caller's
:class:`~f007th.buffers.PayloadBuffer` or nothing at all:

* REST targets get a JSON object with the sensor identity and the fields
  selected by the change mask.
* InfluxDB targets get one line-protocol point, measurement ``sensor``,
  identity as tags and the selected fields as fields.  No timestamp is
  written; the server assigns the write time.

A return value of ``0`` means nothing applied, ``-1`` means the document
did not fit.  Callers treat both as "do not send".
"""

from __future__ import annotations

import json
import logging
from typing import Any

from f007th.buffers import PayloadBuffer
from f007th.models import ChangeMask, ReceivedMessage, SensorReading
from f007th.targets import InfluxTarget, RestTarget, ServerTarget

_logger = logging.getLogger(__name__)

INFLUX_MEASUREMENT = "sensor"

_TAG_ESCAPES = str.maketrans({",": r"\,", " ": r"\ ", "=": r"\="})


def escape_tag(value: object) -> str:
    """Escape a tag key or value for the line protocol."""
    return str(value).translate(_TAG_ESCAPES)


def _selected_fields(reading: SensorReading, changes: ChangeMask) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    if changes & ChangeMask.TEMPERATURE:
        fields["temperature"] = round(reading.temperature_f, 1)
    if changes & ChangeMask.HUMIDITY:
        fields["humidity"] = reading.humidity
    if changes & ChangeMask.BATTERY:
        fields["battery_ok"] = reading.battery_ok
    return fields


def to_json(reading: SensorReading, changes: ChangeMask, *, pretty: bool = False) -> str | None:
    fields = _selected_fields(reading, changes)
    if not fields:
        return None
    document: dict[str, Any] = {
        "type": reading.sensor_type,
        "channel": reading.channel,
        "rolling_code": reading.rolling_code,
        **fields,
    }
    if pretty:
        return json.dumps(document, indent=2)
    return json.dumps(document, separators=(",", ":"))


def _format_field(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value}i"
    return repr(float(value))


def to_line_protocol(reading: SensorReading, changes: ChangeMask) -> str | None:
    fields = _selected_fields(reading, changes)
    if not fields:
        return None
    tags = (
        f"type={escape_tag(reading.sensor_type)}"
        f",channel={escape_tag(reading.channel)}"
        f",rolling_code={escape_tag(reading.rolling_code)}"
    )
    field_set = ",".join(f"{escape_tag(k)}={_format_field(v)}" for k, v in fields.items())
    return f"{INFLUX_MEASUREMENT},{tags} {field_set}"


def encode(
    message: ReceivedMessage,
    buffer: PayloadBuffer,
    changes: ChangeMask,
    target: ServerTarget,
    *,
    pretty: bool = False,
) -> int:
    """Encode *message* into *buffer* for *target*; return the written length."""
    buffer.clear()
    reading = message.reading
    if reading is None or not changes:
        return 0

    match target:
        case RestTarget():
            document = to_json(reading, changes, pretty=pretty)
        case InfluxTarget():
            document = to_line_protocol(reading, changes)
        case _:
            raise TypeError(f"unsupported target {target!r}")

    if document is None:
        return 0
    data = document.encode("utf-8")
    length = buffer.store(data)
    if length < 0:
        _logger.warning(
            "Encoded payload (%d bytes) does not fit the %d byte send buffer",
            len(data),
            buffer.capacity,
        )
    return length
