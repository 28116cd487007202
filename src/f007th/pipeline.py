"""The receive-and-forward loop.

One coroutine waits for messages, classifies each one and, when the send
policy allows, encodes and dispatches it.  A failed dispatch is logged and
the reading is dropped; the loop always moves on to the next message.
"""

from __future__ import annotations

import logging
from collections import Counter
from enum import StrEnum

from f007th.buffers import TransmissionBuffers
from f007th.config import SendConfig, Verbosity
from f007th.dispatcher import Dispatcher
from f007th.encoding import encode
from f007th.models import ChangeMask, ReceivedMessage
from f007th.source import MessageSource
from f007th.targets import InfluxTarget, RestTarget, ServerTarget
from f007th.tracker import ChangeTracker

_logger = logging.getLogger(__name__)


class Outcome(StrEnum):
    EMPTY = "empty"
    UNDECODED = "undecoded"
    INVALID = "invalid"
    UNCHANGED = "unchanged"
    SENT = "sent"
    FAILED = "failed"


def select_changes(
    message: ReceivedMessage,
    tracker: ChangeTracker,
    target: ServerTarget,
    *,
    send_all: bool,
) -> ChangeMask:
    """Return the fields to send for a decoded *message*, or ``NONE``.

    Only valid readings reach the tracker.  With *send_all* an empty mask is
    widened to every field for valid readings, and for REST targets even
    when the reading is invalid.
    """
    reading = message.reading
    if reading is None:
        return ChangeMask.NONE
    changes = tracker.update(reading) if message.valid else ChangeMask.NONE
    if changes or not send_all:
        return changes

    match target:
        case RestTarget():
            return ChangeMask.ALL
        case InfluxTarget() if message.valid:
            return ChangeMask.ALL
    return ChangeMask.NONE


class Forwarder:
    """Drives a message source into a dispatcher."""

    def __init__(
        self,
        config: SendConfig,
        source: MessageSource,
        tracker: ChangeTracker,
        *,
        dispatcher: Dispatcher | None = None,
        buffers: TransmissionBuffers | None = None,
    ) -> None:
        self._config = config
        self._source = source
        self._tracker = tracker
        self._target = config.target
        self._dispatcher = dispatcher or Dispatcher(
            self._target,
            verbosity=config.verbosity,
            timeout=config.request_timeout,
        )
        self._buffers = buffers or TransmissionBuffers.allocate(
            config.send_buffer_size,
            config.response_buffer_size,
        )
        self.outcomes: Counter[Outcome] = Counter()

    async def run(self) -> None:
        config = self._config
        source = self._source
        if config.has(Verbosity.PRINT_STATISTICS):
            source.print_statistics_periodically(config.statistics_interval_ms)

        _logger.info("Receiving data...")
        while not source.is_stopped:
            message = await source.wait_for_message()
            if message is not None:
                if source.is_stopped:
                    break
                self.outcomes[await self.process(message)] += 1

            if source.check_and_reset_timer_event():
                source.print_statistics()
                _logger.info("Forwarding: %s", self._outcome_summary())
        _logger.info("Exiting...")

    def _outcome_summary(self) -> str:
        return " ".join(f"{outcome.value}={self.outcomes[outcome]}" for outcome in Outcome)

    async def process(self, message: ReceivedMessage) -> Outcome:
        """Classify *message* and dispatch it when the send policy says so."""
        config = self._config
        if config.has(Verbosity.INFO):
            _logger.info(
                "%s",
                message.describe(
                    details=config.has(Verbosity.ECHO_DETAILS),
                    raw=config.has(Verbosity.ECHO_UNDECODED) and message.is_undecoded,
                ),
            )

        if message.is_empty:
            _logger.error("Missing data.")
            return Outcome.EMPTY
        if message.is_undecoded:
            _logger.info("Could not decode the received data (error %04x).", message.decoding_status)
            return Outcome.UNDECODED

        changes = select_changes(message, self._tracker, self._target, send_all=config.send_all)
        if not changes:
            if not message.valid:
                _logger.info("Data is not valid and is not sent to server.")
                return Outcome.INVALID
            _logger.info("Data is not changed and is not sent to server.")
            return Outcome.UNCHANGED

        buffers = self._buffers
        length = encode(
            message,
            buffers.outbound,
            changes,
            self._target,
            pretty=config.has(Verbosity.ECHO_PAYLOAD),
        )
        if length > 0 and config.has(Verbosity.ECHO_PAYLOAD):
            _logger.info("Payload: %s", buffers.outbound.payload().decode("utf-8"))

        if not await self._dispatcher.send(buffers.outbound, length, buffers.inbound):
            _logger.info("No data was sent to server.")
            return Outcome.FAILED
        return Outcome.SENT
