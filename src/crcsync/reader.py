"""Chunked reading of input that never splits a line.

Each read fills a fixed-capacity buffer after whatever was carried over
from the previous read. Only bytes up to and including the last newline
are handed out; the incomplete tail is moved to the front of the buffer
and completed by the next read.
"""

import logging
from typing import BinaryIO, Iterator

from .config import DEFAULT_MAX_LINE_LENGTH

logger = logging.getLogger(__name__)


class ScanBuffer:
    """Fixed-capacity byte window.

    Attributes:
        capacity: Size of the backing storage
        read_start: Number of carried-over bytes at the front of the storage
        data_end: End of valid data after the last fill
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 2:
            raise ValueError(f"Scan buffer capacity must be at least 2, got {capacity}")
        self.capacity = capacity
        self.storage = bytearray(capacity)
        self.read_start = 0
        self.data_end = 0

    def fill(self, stream: BinaryIO) -> int:
        """Read from ``stream`` into the free space after the carried bytes."""
        with memoryview(self.storage) as view, view[self.read_start:] as free:
            count = stream.readinto(free) or 0
        self.data_end = self.read_start + count
        return count

    @property
    def is_full(self) -> bool:
        return self.data_end == self.capacity

    def split_point(self) -> int:
        """Offset just past the last newline in the valid data, or 0."""
        return self.storage.rfind(b"\n", 0, self.data_end) + 1

    def take(self, end: int) -> bytes:
        """Return ``storage[:end]`` and shift the rest of the valid data to the front."""
        chunk = bytes(self.storage[:end])
        remainder = self.data_end - end
        self.storage[:remainder] = self.storage[end:self.data_end]
        self.read_start = remainder
        self.data_end = remainder
        return chunk


class ChunkedReader:
    """Iterates over a binary stream in pieces that end on a line boundary.

    Every piece except the last ends with a newline. The last piece holds
    the final line when the input does not end with one. A line that does
    not fit in the buffer is handed out whole-buffer at a time; detecting
    it as too long is up to the consumer.
    """

    def __init__(self, stream: BinaryIO, capacity: int = 2 * DEFAULT_MAX_LINE_LENGTH) -> None:
        self.stream = stream
        self.buffer = ScanBuffer(capacity)
        self.chunks_read = 0

    def __iter__(self) -> Iterator[bytes]:
        buffer = self.buffer
        while True:
            count = buffer.fill(self.stream)

            if count == 0:
                # End of input: hand out the unterminated last line, if any
                if buffer.data_end:
                    self.chunks_read += 1
                    yield buffer.take(buffer.data_end)
                return

            end = buffer.split_point()
            if end == 0:
                if not buffer.is_full:
                    buffer.read_start = buffer.data_end
                    continue
                logger.debug(f"No newline in full scan buffer: {{'capacity': {buffer.capacity}}}")
                end = buffer.data_end

            self.chunks_read += 1
            yield buffer.take(end)
