"""Message sources feeding the forwarder.

The forwarder consumes the :class:`MessageSource` protocol only.
:class:`QueueMessageSource` implements it on top of an ``asyncio.Queue``;
producers running in other threads hand messages over with
:meth:`QueueMessageSource.submit_threadsafe`.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass, field
from typing import Protocol

from f007th.models import ReceivedMessage

_logger = logging.getLogger(__name__)


class MessageSource(Protocol):
    @property
    def is_stopped(self) -> bool: ...

    async def wait_for_message(self) -> ReceivedMessage | None:
        """Block until a message arrives, the source stops or a timer event is due."""
        ...

    def check_and_reset_timer_event(self) -> bool: ...

    def print_statistics(self) -> None: ...

    def print_statistics_periodically(self, interval_ms: int) -> None: ...

    def stop(self) -> None: ...


@dataclass(slots=True)
class ReceiverStatistics:
    """Counters over every message the source handed out."""

    received: int = 0
    decoded: int = 0
    undecoded: int = 0
    empty: int = 0
    started_at: float = field(default_factory=time.monotonic)
    last_message_at: float | None = None

    def record(self, message: ReceivedMessage) -> None:
        self.received += 1
        self.last_message_at = time.monotonic()
        if message.is_undecoded:
            self.undecoded += 1
        elif message.is_empty:
            self.empty += 1
        else:
            self.decoded += 1

    def summary(self) -> str:
        now = time.monotonic()
        text = (
            f"received={self.received} decoded={self.decoded} undecoded={self.undecoded}"
            f" empty={self.empty} uptime={now - self.started_at:.0f}s"
        )
        if self.last_message_at is not None:
            text += f" idle={now - self.last_message_at:.0f}s"
        return text


class QueueMessageSource:
    """In-process message source backed by an asyncio queue."""

    def __init__(self, *, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue[ReceivedMessage] = asyncio.Queue(maxsize)
        self._stopped = asyncio.Event()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._interval: float | None = None
        self._next_tick: float | None = None
        self.statistics = ReceiverStatistics()

    @property
    def is_stopped(self) -> bool:
        return self._stopped.is_set()

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        """Remember the loop that :meth:`submit_threadsafe` schedules onto."""
        self._loop = loop

    def stop(self) -> None:
        self._stopped.set()

    def submit(self, message: ReceivedMessage) -> None:
        """Queue *message*; drops it with a warning when the queue is full."""
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            _logger.warning("Message queue full, dropping message received at %s", message.received_at)

    def submit_threadsafe(self, message: ReceivedMessage) -> None:
        if self._loop is None:
            raise RuntimeError("source is not bound to an event loop")
        self._loop.call_soon_threadsafe(self.submit, message)

    def print_statistics_periodically(self, interval_ms: int) -> None:
        if interval_ms <= 0:
            self._interval = None
            self._next_tick = None
            return
        self._interval = interval_ms / 1000.0
        self._next_tick = time.monotonic() + self._interval

    def check_and_reset_timer_event(self) -> bool:
        if self._interval is None or self._next_tick is None:
            return False
        now = time.monotonic()
        if now < self._next_tick:
            return False
        self._next_tick = now + self._interval
        return True

    def print_statistics(self) -> None:
        _logger.info("Statistics: %s", self.statistics.summary())

    def _until_tick(self) -> float | None:
        if self._next_tick is None:
            return None
        return max(self._next_tick - time.monotonic(), 0.0)

    async def wait_for_message(self) -> ReceivedMessage | None:
        if self.is_stopped:
            return None
        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        get_task = asyncio.ensure_future(self._queue.get())
        stop_task = asyncio.ensure_future(self._stopped.wait())
        try:
            await asyncio.wait(
                {get_task, stop_task},
                timeout=self._until_tick(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for task in (get_task, stop_task):
                if not task.done():
                    task.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await task

        # A get that completed while the other waiter was being cancelled
        # still carries a message and must not be lost.
        if get_task.done() and not get_task.cancelled():
            message = get_task.result()
            self.statistics.record(message)
            return message
        return None
