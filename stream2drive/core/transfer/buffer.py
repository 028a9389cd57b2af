"""
Chunk buffer.

Stages one chunk between the local stream and the network call. The same
buffer is reused for every chunk of a session.
"""
from typing import Optional, Tuple

from .protocols import ReadableHandle


class ChunkBuffer:
    """
    Fixed-capacity byte buffer.

    Pipes and stdin return short reads, so fill() keeps reading until the
    buffer is full or the handle reports end of stream.
    """

    def __init__(self, capacity: int):
        """
        Initialize buffer.

        Args:
            capacity: Maximum number of bytes held (the chunk size)
        """
        if capacity <= 0:
            raise ValueError("Chunk size must be positive")
        self._capacity = capacity
        self._data = bytearray()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._data)

    def getvalue(self) -> bytes:
        """Returns the staged bytes."""
        return bytes(self._data)

    def clear(self) -> None:
        self._data.clear()

    async def fill(
        self,
        source: ReadableHandle,
        limit: Optional[int] = None
    ) -> Tuple[int, bool]:
        """
        Replace the buffer contents with the next bytes from source.

        Args:
            source: Handle to read from
            limit: Read at most this many bytes (capped at capacity)

        Returns:
            Tuple of (bytes read, end of stream reached). A full buffer
            reports eof=False since no further read was attempted.
        """
        want = self._capacity if limit is None else min(limit, self._capacity)
        self._data.clear()

        while len(self._data) < want:
            data = await source.read(want - len(self._data))
            if not data:
                return len(self._data), True
            self._data += data

        return len(self._data), False
