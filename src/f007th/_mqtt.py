"""MQTT message source.

The RF decoder runs as a separate process and publishes every message it
produces as a JSON object on an MQTT topic.  :class:`MqttMessageSource`
subscribes with a threaded paho-mqtt network loop and hands validated
:class:`~f007th.models.ReceivedMessage` objects to the asyncio loop.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, cast

import paho.mqtt.client as mqtt
from pydantic import ValidationError

from f007th.exceptions import F007thDecodeError
from f007th.models import ReceivedMessage
from f007th.source import QueueMessageSource

_logger = logging.getLogger(__name__)


def decode_message_payload(payload: bytes) -> ReceivedMessage:
    """Parse one published decoder message."""
    try:
        parsed = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise F007thDecodeError(f"Payload is not JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise F007thDecodeError("Payload is not a JSON object")
    try:
        return ReceivedMessage.model_validate(parsed)
    except ValidationError as exc:
        raise F007thDecodeError(f"Payload is not a decoder message: {exc}") from exc


class MqttMessageSource(QueueMessageSource):
    """Message source fed by decoder messages published over MQTT."""

    def __init__(
        self,
        host: str,
        port: int,
        topic: str,
        *,
        keepalive: int = 60,
        client_id: str = "",
    ) -> None:
        super().__init__()
        self._host = host
        self._port = port
        self._topic = topic
        self._keepalive = keepalive
        self._client_id = client_id
        self._client: mqtt.Client | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def _on_connect(
        self,
        client: mqtt.Client,
        _userdata: Any,
        _flags: Any,
        reason_code: Any,
        _properties: Any,
    ) -> None:
        if reason_code.is_failure:
            _logger.warning("MQTT connect failed: %s", reason_code)
            return
        _logger.debug("MQTT connected, subscribing topic=%s", self._topic)
        client.subscribe(self._topic, qos=0)

    def _on_message(self, _client: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
        try:
            message = decode_message_payload(msg.payload)
        except F007thDecodeError as exc:
            _logger.warning("Dropping message on %s: %s", msg.topic, exc)
            return
        self.submit_threadsafe(message)

    def _on_disconnect(
        self,
        _client: mqtt.Client,
        _userdata: Any,
        _disconnect_flags: Any,
        reason_code: Any,
        _properties: Any,
    ) -> None:
        if self._running:
            _logger.warning("MQTT disconnected: %s", reason_code)

    def start(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Connect and start the network thread."""
        self.bind(loop or asyncio.get_running_loop())
        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=self._client_id,
        )
        client.enable_logger(_logger)
        client.on_connect = self._on_connect
        client.on_message = self._on_message
        client.on_disconnect = self._on_disconnect

        _logger.debug("MQTT connecting host=%s port=%s", self._host, self._port)
        client.connect(self._host, self._port, keepalive=self._keepalive)
        client.loop_start()
        self._client = client
        self._running = True

    def stop(self) -> None:
        super().stop()
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False
        if client is None:
            return
        try:
            if was_running:
                client.disconnect()
        finally:
            client.loop_stop()
            _logger.debug("MQTT network loop stopped")
