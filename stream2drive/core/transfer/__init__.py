"""
Transfer module.

Chunked, resumable streaming of files and pipes to and from a remote
object store.
"""
from .engine import TransferEngine
from .buffer import ChunkBuffer
from .models import (
    Direction,
    TransferState,
    ProgressEvent,
    MediaMetadata,
    ChunkInfo,
    TransferProgress,
    TransferSession,
    TransferResult
)
from .sources import SeekableFileSource, SequentialStreamSource, open_source
from .sinks import FileSink, StreamSink, HashingSink
from .protocols import StreamSource, DownloadSink, RemoteEndpoint, ProgressCallback

__all__ = [
    # Main classes
    'TransferEngine',
    'ChunkBuffer',

    # Models
    'Direction',
    'TransferState',
    'ProgressEvent',
    'MediaMetadata',
    'ChunkInfo',
    'TransferProgress',
    'TransferSession',
    'TransferResult',

    # Sources and sinks
    'SeekableFileSource',
    'SequentialStreamSource',
    'open_source',
    'FileSink',
    'StreamSink',
    'HashingSink',

    # Protocols
    'StreamSource',
    'DownloadSink',
    'RemoteEndpoint',
    'ProgressCallback',
]
