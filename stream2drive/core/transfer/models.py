"""
Data models for the transfer engine.

Uses dataclasses for type-safe data structures.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional

from ..exceptions import TransferError


class Direction(Enum):
    UPLOAD = 'upload'
    DOWNLOAD = 'download'


class TransferState(Enum):
    """
    States of a transfer session.

    INITIATION -> IN_PROGRESS (once per chunk) -> COMPLETE, with FAILED
    reachable from any state.
    """
    INITIATION = 'initiation'
    IN_PROGRESS = 'in_progress'
    COMPLETE = 'complete'
    FAILED = 'failed'


class ProgressEvent(Enum):
    """The closed set of events a progress callback receives."""
    INITIATION_STARTED = 'initiation-started'
    INITIATION_COMPLETE = 'initiation-complete'
    MEDIA_IN_PROGRESS = 'in-progress'
    MEDIA_COMPLETE = 'complete'


@dataclass(frozen=True)
class MediaMetadata:
    """
    Metadata of the remote object created by an upload.

    Attributes:
        title: Remote file title
        mime_type: Content MIME type
        parent_id: Optional parent folder id (Drive root when None)
    """
    title: str
    mime_type: str = 'application/octet-stream'
    parent_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a Drive v2 file resource body."""
        result: Dict[str, Any] = {'title': self.title, 'mimeType': self.mime_type}
        if self.parent_id:
            result['parents'] = [{'id': self.parent_id}]
        return result


@dataclass(frozen=True)
class ChunkInfo:
    """
    A byte range [start, end) of the stream.

    Attributes:
        index: Chunk index
        start: Start position in bytes
        end: End position in bytes
        is_final: True for the chunk that completes the stream
    """
    index: int
    start: int
    end: int
    is_final: bool = False

    @property
    def size(self) -> int:
        """Returns chunk size."""
        return self.end - self.start


@dataclass(frozen=True)
class TransferProgress:
    """
    Snapshot passed to progress callbacks.

    Attributes:
        event: Which transition happened
        bytes_transferred: Bytes acknowledged so far
        total_bytes: Total length, None when unknown
    """
    event: ProgressEvent
    bytes_transferred: int = 0
    total_bytes: Optional[int] = None

    @property
    def percentage(self) -> Optional[float]:
        """Progress as a percentage, None when the total is unknown."""
        if self.total_bytes is None:
            return None
        if self.total_bytes == 0:
            return 100.0
        return (self.bytes_transferred / self.total_bytes) * 100


@dataclass
class TransferSession:
    """
    Bookkeeping for one upload or download.

    Owned by a single TransferEngine call. bytes_transferred only grows and
    never exceeds a known total.
    """
    direction: Direction
    chunk_size: int
    total_bytes: Optional[int] = None
    bytes_transferred: int = 0
    state: TransferState = TransferState.INITIATION
    chunks: int = 0

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise ValueError("Chunk size must be positive")

    @property
    def length_known(self) -> bool:
        return self.total_bytes is not None

    @property
    def remaining(self) -> Optional[int]:
        """Bytes left to transfer, None when the total is unknown."""
        if self.total_bytes is None:
            return None
        return self.total_bytes - self.bytes_transferred

    def next_request_size(self) -> int:
        """Size of the next chunk request."""
        if self.total_bytes is None:
            return self.chunk_size
        return min(self.chunk_size, self.total_bytes - self.bytes_transferred)

    def advance(self, count: int) -> None:
        """Record `count` acknowledged bytes."""
        if count < 0:
            raise ValueError("Byte count cannot be negative")
        new_total = self.bytes_transferred + count
        if self.total_bytes is not None and new_total > self.total_bytes:
            raise TransferError(
                f"Transferred {new_total} bytes, more than the expected {self.total_bytes}",
                bytes_transferred=self.bytes_transferred
            )
        self.bytes_transferred = new_total
        if count:
            self.chunks += 1

    def progress(self, event: ProgressEvent) -> TransferProgress:
        return TransferProgress(
            event=event,
            bytes_transferred=self.bytes_transferred,
            total_bytes=self.total_bytes
        )


@dataclass(frozen=True)
class TransferResult:
    """
    Result of a completed transfer.

    Attributes:
        direction: Upload or download
        bytes_transferred: Total bytes moved
        chunks: Number of non-empty chunks sent or received
        file: Created (upload) or fetched (download) remote file, if known
    """
    direction: Direction
    bytes_transferred: int
    chunks: int
    file: Optional[Any] = field(default=None)
