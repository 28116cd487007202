"""Per-sensor change tracking.

The forwarder only needs :class:`ChangeTracker`; :class:`SensorsData` is
the in-memory implementation used by the command line tool.
"""

from __future__ import annotations

from typing import Protocol

from f007th.models import ChangeMask, SensorReading


class ChangeTracker(Protocol):
    def update(self, reading: SensorReading) -> ChangeMask:
        """Record *reading* and return the fields that changed."""
        ...


class SensorsData:
    """Last known reading per sensor identity.

    The first reading of a sensor reports every field as changed.  After
    that only fields whose value differs from the stored reading are
    reported, and the stored reading is replaced.
    """

    def __init__(self) -> None:
        self._readings: dict[tuple[str, int, int], SensorReading] = {}

    def __len__(self) -> int:
        return len(self._readings)

    def update(self, reading: SensorReading) -> ChangeMask:
        key = reading.sensor_id
        previous = self._readings.get(key)
        if previous is None:
            self._readings[key] = reading
            return ChangeMask.ALL

        changed = ChangeMask.NONE
        if previous.temperature_f != reading.temperature_f:
            changed |= ChangeMask.TEMPERATURE
        if previous.humidity != reading.humidity:
            changed |= ChangeMask.HUMIDITY
        if previous.battery_ok != reading.battery_ok:
            changed |= ChangeMask.BATTERY

        if changed:
            self._readings[key] = reading
        return changed
