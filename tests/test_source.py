from __future__ import annotations

import asyncio
import threading

import pytest

from f007th.models import ReceivedMessage, SensorReading
from f007th.source import QueueMessageSource, ReceiverStatistics


def _decoded() -> ReceivedMessage:
    reading = SensorReading(channel=1, rolling_code=5, temperature_f=60.0, humidity=30, battery_ok=True)
    return ReceivedMessage(reading=reading, valid=True)


@pytest.mark.asyncio
async def test_wait_returns_submitted_message_and_counts_it() -> None:
    source = QueueMessageSource()
    source.submit(_decoded())
    source.submit(ReceivedMessage(undecoded=True, decoding_status=3))
    source.submit(ReceivedMessage())

    for _ in range(3):
        assert await source.wait_for_message() is not None

    assert source.statistics.received == 3
    assert source.statistics.decoded == 1
    assert source.statistics.undecoded == 1
    assert source.statistics.empty == 1


@pytest.mark.asyncio
async def test_stop_wakes_a_blocked_wait() -> None:
    source = QueueMessageSource()
    waiter = asyncio.create_task(source.wait_for_message())
    await asyncio.sleep(0)

    source.stop()

    assert await asyncio.wait_for(waiter, 1.0) is None
    assert source.is_stopped


@pytest.mark.asyncio
async def test_message_submitted_from_another_thread_is_delivered() -> None:
    source = QueueMessageSource()
    source.bind(asyncio.get_running_loop())
    thread = threading.Thread(target=source.submit_threadsafe, args=(_decoded(),))
    thread.start()
    thread.join()

    message = await asyncio.wait_for(source.wait_for_message(), 1.0)
    assert message is not None
    assert message.reading is not None


@pytest.mark.asyncio
async def test_timer_event_wakes_wait_and_resets() -> None:
    source = QueueMessageSource()
    assert not source.check_and_reset_timer_event()

    source.print_statistics_periodically(20)

    async def wait_for_tick() -> None:
        while not source.check_and_reset_timer_event():
            assert await source.wait_for_message() is None

    await asyncio.wait_for(wait_for_tick(), 1.0)
    assert not source.check_and_reset_timer_event()


@pytest.mark.asyncio
async def test_full_queue_drops_message() -> None:
    source = QueueMessageSource(maxsize=1)
    source.submit(_decoded())
    source.submit(_decoded())
    assert await source.wait_for_message() is not None
    assert source._queue.empty()  # noqa: SLF001
    source.stop()
    assert await source.wait_for_message() is None


def test_statistics_summary_reports_idle_time(monkeypatch: pytest.MonkeyPatch) -> None:
    stats = ReceiverStatistics(started_at=100.0)
    monkeypatch.setattr("f007th.source.time.monotonic", lambda: 130.0)
    assert "idle" not in stats.summary()

    stats.record(ReceivedMessage())
    monkeypatch.setattr("f007th.source.time.monotonic", lambda: 142.0)
    assert stats.summary() == "received=1 decoded=0 undecoded=0 empty=1 uptime=42s idle=12s"
