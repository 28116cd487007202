from __future__ import annotations

import pytest

from f007th.buffers import BoundedWriter, PayloadBuffer, TransmissionBuffers


class TestPayloadBuffer:
    def test_store_terminates_document(self) -> None:
        buffer = PayloadBuffer(16)
        assert buffer.store(b"hello") == 5
        assert buffer.payload() == b"hello"
        assert buffer.is_terminated()

    def test_document_must_leave_room_for_terminator(self) -> None:
        buffer = PayloadBuffer(8)
        assert buffer.store(b"1234567") == 7
        assert buffer.store(b"12345678") == -1
        assert len(buffer) == 0
        assert buffer.payload() == b""
        assert buffer.is_terminated()

    def test_zero_capacity_rejected(self) -> None:
        with pytest.raises(ValueError):
            PayloadBuffer(0)


class TestBoundedWriter:
    def test_truncates_silently_at_capacity(self) -> None:
        backing = bytearray(10)
        writer = BoundedWriter(backing)
        assert writer.write(b"abcdef") == 6
        assert writer.write(b"ghijkl") == 3
        assert writer.write(b"more") == 0
        assert writer.getvalue() == b"abcdefghi"
        assert writer.truncated
        assert writer.remaining == 0
        assert len(backing) == 10
        assert backing[9] == 0

    def test_large_response_never_grows_buffer(self) -> None:
        writer = BoundedWriter.with_capacity(64)
        for _ in range(100):
            writer.write(b"x" * 1000)
        assert len(writer) == 63
        assert writer.capacity == 64

    def test_reset_clears_state(self) -> None:
        writer = BoundedWriter.with_capacity(4)
        writer.write(b"abcdef")
        writer.reset()
        assert not writer
        assert not writer.truncated
        assert writer.remaining == 3

    def test_single_byte_buffer_holds_only_terminator(self) -> None:
        writer = BoundedWriter(bytearray(1))
        assert writer.remaining == 0
        assert writer.write(b"a") == 0
        assert writer.text == ""


def test_transmission_buffers_allocate_sizes() -> None:
    buffers = TransmissionBuffers.allocate(32, 48)
    assert buffers.outbound.capacity == 32
    assert buffers.inbound.capacity == 48
