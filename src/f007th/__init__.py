"""f007th - forward Ambient Weather F007TH readings to REST or InfluxDB servers."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("f007th-send")
except PackageNotFoundError:
    __version__ = "0+local"
from f007th.buffers import BoundedWriter, PayloadBuffer, TransmissionBuffers
from f007th.config import SendConfig, Verbosity
from f007th.dispatcher import Dispatcher
from f007th.encoding import encode
from f007th.exceptions import (
    F007thConfigError,
    F007thDecodeError,
    F007thError,
    F007thTransportError,
)
from f007th.models import ChangeMask, ReceivedMessage, SensorReading
from f007th.pipeline import Forwarder, Outcome, select_changes
from f007th.source import MessageSource, QueueMessageSource, ReceiverStatistics
from f007th.targets import InfluxTarget, RestTarget, ServerTarget, ServerType, make_target
from f007th.tracker import ChangeTracker, SensorsData

__all__ = [
    "__version__",
    "BoundedWriter",
    "ChangeMask",
    "ChangeTracker",
    "Dispatcher",
    "F007thConfigError",
    "F007thDecodeError",
    "F007thError",
    "F007thTransportError",
    "Forwarder",
    "InfluxTarget",
    "MessageSource",
    "Outcome",
    "PayloadBuffer",
    "QueueMessageSource",
    "ReceivedMessage",
    "ReceiverStatistics",
    "RestTarget",
    "SendConfig",
    "SensorReading",
    "SensorsData",
    "ServerTarget",
    "ServerType",
    "TransmissionBuffers",
    "Verbosity",
    "encode",
    "make_target",
    "select_changes",
]
