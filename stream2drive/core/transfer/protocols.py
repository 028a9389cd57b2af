"""
Protocol definitions for the transfer module.

Defines the interfaces the TransferEngine depends on, so the engine never
knows whether it talks to a file or a pipe, or to Drive or a test double.
"""
from typing import Protocol, Optional, Callable

from .models import MediaMetadata, TransferProgress
from ..api.models import FileMetadata, UploadSession, DownloadLocation


ProgressCallback = Callable[[TransferProgress], None]


class ReadableHandle(Protocol):
    """An open, asynchronously readable byte stream."""

    async def read(self, size: int = -1) -> bytes:
        ...


class WritableHandle(Protocol):
    """An open, asynchronously writable byte stream."""

    async def write(self, data: bytes) -> int:
        ...

    async def flush(self) -> None:
        ...


class StreamSource(Protocol):
    """
    Protocol for upload sources.

    Implemented by SeekableFileSource (regular files) and
    SequentialStreamSource (stdin, pipes).
    """

    @property
    def name(self) -> str:
        """Display name of the source."""
        ...

    @property
    def length(self) -> Optional[int]:
        """Total length in bytes, None when unknown."""
        ...

    @property
    def retry_supported(self) -> bool:
        """True when already consumed bytes can be read again."""
        ...

    async def open(self) -> ReadableHandle:
        """Open the underlying handle. Called at most once per session."""
        ...

    async def seek(self, offset: int) -> None:
        """Reposition the handle. Only valid when retry_supported."""
        ...

    async def close(self) -> None:
        ...


class DownloadSink(Protocol):
    """Protocol for download destinations."""

    @property
    def name(self) -> str:
        ...

    def exists(self) -> bool:
        """True when writing would overwrite existing local data."""
        ...

    async def open(self) -> None:
        ...

    async def write(self, data: bytes) -> None:
        ...

    async def close(self, success: bool = True) -> None:
        """Flush and release the sink. On failure, discard partial output."""
        ...


class RemoteEndpoint(Protocol):
    """
    Protocol for the remote object store.

    DriveEndpoint is the production implementation.
    """

    async def begin_resumable_upload(
        self,
        metadata: MediaMetadata,
        total_bytes: Optional[int] = None
    ) -> UploadSession:
        """
        Open a resumable upload session.

        Args:
            metadata: Title, MIME type and parent of the new object
            total_bytes: Content length, None when streaming

        Returns:
            Session handle for upload_chunk()
        """
        ...

    async def upload_chunk(
        self,
        session: UploadSession,
        offset: int,
        data: bytes,
        is_final: bool,
        compress: bool = False
    ) -> Optional[FileMetadata]:
        """
        Send one chunk.

        Args:
            session: Session from begin_resumable_upload()
            offset: Stream offset of data[0]
            data: Chunk bytes (may be empty for a final chunk)
            is_final: True when this chunk completes the stream
            compress: gzip the request body

        Returns:
            The created file for the final chunk, None otherwise
        """
        ...

    async def query_upload_offset(self, session: UploadSession) -> int:
        """Return how many bytes the server has committed."""
        ...

    async def resolve_download_location(self, file_id: str) -> DownloadLocation:
        ...

    async def get_range(
        self,
        location: DownloadLocation,
        offset: int,
        length: int
    ) -> bytes:
        ...

