"""Decoded F007TH transmissions."""

from __future__ import annotations

from pydantic import Field

from f007th._constants import SENSOR_TYPE
from f007th.models._base import F007thBaseModel, Timestamp, _utcnow


class SensorReading(F007thBaseModel):
    """Fields decoded from one F007TH transmission.

    Values are kept as decoded even when the checksum failed, so range
    checks belong to the caller (see :attr:`ReceivedMessage.valid`).
    """

    sensor_type: str = SENSOR_TYPE
    channel: int
    rolling_code: int
    temperature_f: float
    humidity: int
    battery_ok: bool

    @property
    def sensor_id(self) -> tuple[str, int, int]:
        """Identity of the sensor that sent the reading."""
        return (self.sensor_type, self.channel, self.rolling_code)

    @property
    def temperature_c(self) -> float:
        return round((self.temperature_f - 32.0) * 5.0 / 9.0, 1)


class ReceivedMessage(F007thBaseModel):
    """One transmission handed over by the receiver.

    A message is either empty (nothing decoded), undecoded (bits were
    received but could not be parsed, see ``decoding_status``) or decoded
    (``reading`` is set; ``valid`` tells whether the checksum matched).
    """

    received_at: Timestamp = Field(default_factory=_utcnow)
    reading: SensorReading | None = None
    valid: bool = False
    undecoded: bool = False
    decoding_status: int = 0
    raw_data: str = ""
    """Hex dump of the received bits, if the receiver provided one."""

    @property
    def is_empty(self) -> bool:
        return self.reading is None and not self.undecoded

    @property
    def is_undecoded(self) -> bool:
        return self.undecoded

    def describe(self, *, details: bool = False, raw: bool = False) -> str:
        """Single-line summary used for INFO logging."""
        ts = self.received_at.strftime("%Y-%m-%d %H:%M:%S")
        if self.undecoded:
            text = f"{ts} undecoded message (status {self.decoding_status:04x})"
        elif self.reading is None:
            text = f"{ts} empty message"
        else:
            r = self.reading
            text = (
                f"{ts} {r.sensor_type} channel={r.channel} rolling_code={r.rolling_code}"
                f" temperature={r.temperature_f:.1f}F humidity={r.humidity}%"
                f" battery={'OK' if r.battery_ok else 'LOW'}"
            )
            if not self.valid:
                text += " (invalid)"
            if details:
                text += f" [{r.temperature_c:.1f}C]"
        if (raw or details) and self.raw_data:
            text += f" data={self.raw_data}"
        return text
