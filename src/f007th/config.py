"""Process configuration for f007th-send."""

from __future__ import annotations

import dataclasses
import enum
import os
from collections.abc import Callable
from typing import Any, TypeVar

from f007th._constants import (
    DEFAULT_GPIO,
    DEFAULT_LOG_FILE,
    DEFAULT_MQTT_HOST,
    DEFAULT_MQTT_KEEPALIVE,
    DEFAULT_MQTT_PORT,
    DEFAULT_STATISTICS_INTERVAL_MS,
    SEND_DATA_BUFFER_SIZE,
    SERVER_RESPONSE_BUFFER_SIZE,
)
from f007th.exceptions import F007thConfigError
from f007th.targets import ServerTarget, ServerType, make_target

_N = TypeVar("_N", int, float)


class Verbosity(enum.IntFlag):
    """Independent diagnostic toggles."""

    NONE = 0
    INFO = 1
    ECHO_PAYLOAD = 2
    TRACE_WIRE = 4
    ECHO_UNDECODED = 8
    ECHO_DETAILS = 16
    PRINT_STATISTICS = 32

    # ``-V`` on the command line.
    MORE_VERBOSE = INFO | ECHO_PAYLOAD | TRACE_WIRE | ECHO_UNDECODED | ECHO_DETAILS


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, convert: Callable[[str], _N]) -> _N:
    try:
        return convert(value.strip())
    except ValueError:
        raise F007thConfigError(f'Invalid value "{value}" for {env_key}') from None


@dataclasses.dataclass(frozen=True)
class SendConfig:
    """Forwarder configuration, fixed before the receive loop starts.

    Parameters
    ----------
    url : str or None
        Destination URL (``http://`` or ``https://``).
    server_type : ServerType
        Wire format of the destination. Defaults to REST.
    gpio : int
        GPIO pin of the receiver feeding the decoder.
    send_all : bool
        Send every valid reading (and, for REST, invalid ones too) instead
        of only changed readings.
    log_file : str
        Path of the log file, truncated at startup.
    verbosity : Verbosity
        Diagnostic toggles.
    statistics_interval_ms : int
        Period of statistics output when ``PRINT_STATISTICS`` is set.
    request_timeout : float or None
        Total timeout in seconds for one HTTP exchange. ``None`` waits
        without limit.
    send_buffer_size : int
        Capacity of the outbound payload buffer, terminator included.
    response_buffer_size : int
        Capacity of the inbound response buffer, terminator included.
    mqtt_host, mqtt_port, mqtt_keepalive : str, int, int
        Broker the RF decoder publishes decoded messages to.
    mqtt_topic : str or None
        Topic of decoded messages. Defaults to ``f007th/gpio<gpio>``.
    """

    url: str | None = None
    server_type: ServerType = ServerType.REST
    gpio: int = DEFAULT_GPIO
    send_all: bool = False
    log_file: str = DEFAULT_LOG_FILE
    verbosity: Verbosity = Verbosity.NONE
    statistics_interval_ms: int = DEFAULT_STATISTICS_INTERVAL_MS
    request_timeout: float | None = None
    send_buffer_size: int = SEND_DATA_BUFFER_SIZE
    response_buffer_size: int = SERVER_RESPONSE_BUFFER_SIZE
    mqtt_host: str = DEFAULT_MQTT_HOST
    mqtt_port: int = DEFAULT_MQTT_PORT
    mqtt_topic: str | None = None
    mqtt_keepalive: int = DEFAULT_MQTT_KEEPALIVE

    @property
    def target(self) -> ServerTarget:
        """The destination variant; raises ``F007thConfigError`` for a bad URL."""
        return make_target(self.url, self.server_type)

    @property
    def topic(self) -> str:
        return self.mqtt_topic or f"f007th/gpio{self.gpio}"

    def has(self, flag: Verbosity) -> bool:
        return bool(self.verbosity & flag)

    @classmethod
    def from_env(cls, **overrides: Any) -> SendConfig:
        """Create configuration from ``F007TH_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "F007TH_URL": "url",
            "F007TH_LOG_FILE": "log_file",
            "F007TH_MQTT_HOST": "mqtt_host",
            "F007TH_MQTT_TOPIC": "mqtt_topic",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        server_type_env = env.get("F007TH_SERVER_TYPE")
        if server_type_env is not None and "server_type" not in overrides:
            config_kwargs["server_type"] = ServerType.parse(server_type_env)

        _ENV_INT_MAP = {
            "F007TH_GPIO": "gpio",
            "F007TH_STATISTICS_INTERVAL_MS": "statistics_interval_ms",
            "F007TH_MQTT_PORT": "mqtt_port",
            "F007TH_MQTT_KEEPALIVE": "mqtt_keepalive",
        }
        for env_key, field_name in _ENV_INT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, int)

        timeout_env = env.get("F007TH_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = _env_number("F007TH_REQUEST_TIMEOUT", timeout_env, float)

        if "send_all" not in overrides:
            config_kwargs["send_all"] = _env_bool(env.get("F007TH_SEND_ALL"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
