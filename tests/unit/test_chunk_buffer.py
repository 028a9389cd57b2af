"""
Unit tests for the chunk buffer.

Tests filling from short-read streams, end of stream detection and limits.
"""
import pytest

from stream2drive.core.transfer import ChunkBuffer


class TestChunkBufferInit:
    """Tests for ChunkBuffer construction."""

    def test_capacity(self):
        """Test capacity is the chunk size."""
        buffer = ChunkBuffer(1024)

        assert buffer.capacity == 1024
        assert len(buffer) == 0

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_rejects_non_positive_capacity(self, capacity):
        """Test non-positive chunk sizes are rejected."""
        with pytest.raises(ValueError):
            ChunkBuffer(capacity)


class TestChunkBufferFill:
    """Tests for ChunkBuffer.fill."""

    @pytest.mark.asyncio
    async def test_fills_to_capacity_across_short_reads(self, pipe_reader):
        """Test a pipe handing out 7 bytes at a time still fills the buffer."""
        reader = pipe_reader(b'a' * 100, piece=7)
        buffer = ChunkBuffer(50)

        count, eof = await buffer.fill(reader)

        assert count == 50
        assert eof is False
        assert buffer.getvalue() == b'a' * 50
        assert len(reader.requested) > 1

    @pytest.mark.asyncio
    async def test_never_requests_more_than_capacity(self, pipe_reader):
        """Test reads never ask for more than the free space."""
        reader = pipe_reader(bytes(range(256)) * 10, piece=33)
        buffer = ChunkBuffer(64)

        await buffer.fill(reader)
        await buffer.fill(reader)

        assert max(reader.requested) <= 64

    @pytest.mark.asyncio
    async def test_reports_end_of_stream(self, pipe_reader):
        """Test a partial fill at end of stream."""
        reader = pipe_reader(b'xyz' * 10, piece=4)
        buffer = ChunkBuffer(64)

        count, eof = await buffer.fill(reader)

        assert count == 30
        assert eof is True
        assert buffer.getvalue() == b'xyz' * 10

    @pytest.mark.asyncio
    async def test_empty_stream(self, pipe_reader):
        """Test an empty stream yields an empty buffer and eof."""
        buffer = ChunkBuffer(16)

        count, eof = await buffer.fill(pipe_reader(b''))

        assert (count, eof) == (0, True)
        assert buffer.getvalue() == b''

    @pytest.mark.asyncio
    async def test_exact_multiple_needs_another_read_for_eof(self, pipe_reader):
        """Test a stream of exactly one chunk is only known to end on the next fill."""
        reader = pipe_reader(b'q' * 32)
        buffer = ChunkBuffer(32)

        assert await buffer.fill(reader) == (32, False)
        assert await buffer.fill(reader) == (0, True)

    @pytest.mark.asyncio
    async def test_limit_caps_the_fill(self, pipe_reader):
        """Test the limit argument reads fewer bytes than capacity."""
        reader = pipe_reader(b'0123456789' * 10)
        buffer = ChunkBuffer(64)

        count, eof = await buffer.fill(reader, limit=10)

        assert count == 10
        assert eof is False
        assert buffer.getvalue() == b'0123456789'

    @pytest.mark.asyncio
    async def test_limit_above_capacity_is_capped(self, pipe_reader):
        """Test a limit larger than capacity still stops at capacity."""
        buffer = ChunkBuffer(8)

        count, _ = await buffer.fill(pipe_reader(b'z' * 100), limit=1000)

        assert count == 8

    @pytest.mark.asyncio
    async def test_refill_replaces_contents(self, pipe_reader):
        """Test each fill holds only the next chunk."""
        reader = pipe_reader(b'AAAABBBBCC')
        buffer = ChunkBuffer(4)

        await buffer.fill(reader)
        await buffer.fill(reader)
        assert buffer.getvalue() == b'BBBB'

        count, eof = await buffer.fill(reader)
        assert buffer.getvalue() == b'CC'
        assert (count, eof) == (2, True)

    @pytest.mark.asyncio
    async def test_read_error_propagates(self, pipe_reader):
        """Test an OSError from the stream is not swallowed."""
        reader = pipe_reader(b'x' * 100, piece=10, error_at=20)
        buffer = ChunkBuffer(64)

        with pytest.raises(OSError):
            await buffer.fill(reader)

    def test_clear(self):
        """Test clearing the buffer."""
        buffer = ChunkBuffer(8)
        buffer.clear()

        assert len(buffer) == 0
        assert buffer.getvalue() == b''
