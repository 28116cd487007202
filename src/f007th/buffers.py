"""Fixed-capacity transmission buffers.

Both buffers are allocated once by the forwarder and reused for every
reading.  Neither ever grows: the outbound buffer refuses documents that
do not fit and the inbound writer silently drops whatever exceeds its
capacity.  Each keeps a NUL terminator inside its capacity so the content
length is always ``capacity - 1`` at most.
"""

from __future__ import annotations

import dataclasses

from f007th._constants import SEND_DATA_BUFFER_SIZE, SERVER_RESPONSE_BUFFER_SIZE


def _allocate(capacity: int) -> bytearray:
    if capacity < 1:
        raise ValueError(f"buffer capacity must be positive, got {capacity}")
    return bytearray(capacity)


class PayloadBuffer:
    """Outbound buffer holding one encoded document."""

    def __init__(self, capacity: int = SEND_DATA_BUFFER_SIZE) -> None:
        self._buffer = _allocate(capacity)
        self._length = 0

    @property
    def capacity(self) -> int:
        return len(self._buffer)

    def __len__(self) -> int:
        return self._length

    def clear(self) -> None:
        self._length = 0
        self._buffer[0] = 0

    def store(self, document: bytes) -> int:
        """Copy *document* in and terminate it.

        Returns the stored length, or ``-1`` (buffer cleared) when the
        document plus terminator would exceed the capacity.
        """
        size = len(document)
        if size >= self.capacity:
            self.clear()
            return -1
        self._buffer[:size] = document
        self._buffer[size] = 0
        self._length = size
        return size

    def view(self) -> memoryview:
        return memoryview(self._buffer)[: self._length]

    def payload(self) -> bytes:
        return bytes(self._buffer[: self._length])

    def is_terminated(self) -> bool:
        return self._buffer[self._length] == 0


class BoundedWriter:
    """Append-only writer over a fixed bytearray that truncates at capacity."""

    def __init__(self, buffer: bytearray) -> None:
        if len(buffer) < 1:
            raise ValueError("buffer must hold at least the terminator")
        self._buffer = buffer
        self._length = 0
        self._truncated = False
        self._buffer[0] = 0

    @classmethod
    def with_capacity(cls, capacity: int = SERVER_RESPONSE_BUFFER_SIZE) -> BoundedWriter:
        return cls(_allocate(capacity))

    @property
    def capacity(self) -> int:
        return len(self._buffer)

    @property
    def remaining(self) -> int:
        # One byte stays reserved for the terminator; never negative.
        return max(self.capacity - 1 - self._length, 0)

    @property
    def truncated(self) -> bool:
        return self._truncated

    def __len__(self) -> int:
        return self._length

    def __bool__(self) -> bool:
        return self._length > 0

    def reset(self) -> None:
        self._length = 0
        self._truncated = False
        self._buffer[0] = 0

    def write(self, data: bytes) -> int:
        """Append as much of *data* as fits; return the number of bytes kept."""
        count = min(len(data), self.remaining)
        if count < len(data):
            self._truncated = True
        if count:
            start = self._length
            self._buffer[start : start + count] = memoryview(data)[:count]
            self._length += count
            self._buffer[self._length] = 0
        return count

    def getvalue(self) -> bytes:
        return bytes(self._buffer[: self._length])

    @property
    def text(self) -> str:
        return self.getvalue().decode("utf-8", errors="replace")


@dataclasses.dataclass
class TransmissionBuffers:
    """Outbound payload and inbound response buffers owned by the forwarder."""

    outbound: PayloadBuffer = dataclasses.field(default_factory=PayloadBuffer)
    inbound: BoundedWriter = dataclasses.field(default_factory=BoundedWriter.with_capacity)

    @classmethod
    def allocate(
        cls,
        send_size: int = SEND_DATA_BUFFER_SIZE,
        response_size: int = SERVER_RESPONSE_BUFFER_SIZE,
    ) -> TransmissionBuffers:
        return cls(PayloadBuffer(send_size), BoundedWriter.with_capacity(response_size))
