"""Models for decoded sensor messages."""

from f007th.models.changes import ChangeMask
from f007th.models.message import ReceivedMessage, SensorReading

__all__ = [
    "ChangeMask",
    "ReceivedMessage",
    "SensorReading",
]
