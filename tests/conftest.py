"""Pytest fixtures for stream2drive tests."""
from typing import List, Optional

import pytest
from Crypto.Random import get_random_bytes

from stream2drive.core.api.models import DownloadLocation, FileMetadata, UploadSession
from stream2drive.core.exceptions import DriveRequestError


class PipeReader:
    """Async readable that hands out at most `piece` bytes per read, like a pipe."""

    def __init__(self, data: bytes, piece: int = 4096, error_at: Optional[int] = None):
        self._data = data
        self._pos = 0
        self._piece = piece
        self._error_at = error_at
        self.requested: List[int] = []

    async def read(self, size: int = -1) -> bytes:
        self.requested.append(size)
        if self._error_at is not None and self._pos >= self._error_at:
            raise OSError("Broken pipe")
        n = self._piece if size < 0 else min(size, self._piece)
        chunk = self._data[self._pos:self._pos + n]
        self._pos += len(chunk)
        return chunk


class MemoryWriter:
    """Async writable collecting everything written."""

    def __init__(self):
        self.data = bytearray()
        self.flushes = 0

    async def write(self, data: bytes) -> int:
        self.data += data
        return len(data)

    async def flush(self) -> None:
        self.flushes += 1


class InMemoryEndpoint:
    """
    RemoteEndpoint keeping uploaded and downloadable objects in memory.

    chunk_failures / range_failures are consumed one per call: None lets
    the call through, an exception is raised, and (exception, n) stores
    the first n bytes of the chunk before raising.
    """

    def __init__(self, objects=None):
        self.objects = dict(objects or {})
        self.calls: List[str] = []
        self.chunks = []
        self.ranges = []
        self.uploaded = bytearray()
        self.metadata = None
        self.declared_total = None
        self.chunk_failures = []
        self.range_failures = []
        self.truncate_at: Optional[int] = None

    async def begin_resumable_upload(self, metadata, total_bytes=None):
        self.calls.append('begin')
        self.metadata = metadata
        self.declared_total = total_bytes
        return UploadSession(url="https://upload.example/session/1", total_bytes=total_bytes)

    async def upload_chunk(self, session, offset, data, is_final, compress=False):
        self.calls.append('chunk')
        if self.chunk_failures:
            failure = self.chunk_failures.pop(0)
            if isinstance(failure, tuple):
                error, stored = failure
                self.uploaded += data[:stored]
                raise error
            if failure is not None:
                raise failure

        assert offset == len(self.uploaded), "chunk does not continue the stream"
        self.uploaded += data
        self.chunks.append((offset, len(data), is_final, compress))

        if is_final:
            return FileMetadata(
                id='new-file-id',
                title=self.metadata.title,
                mime_type=self.metadata.mime_type,
                file_size=len(self.uploaded)
            )
        return None

    async def query_upload_offset(self, session):
        self.calls.append('query')
        return len(self.uploaded)

    async def resolve_download_location(self, file_id):
        self.calls.append('resolve')
        return DownloadLocation(
            url=f"https://content.example/{file_id}",
            size=len(self.objects[file_id])
        )

    async def get_range(self, location, offset, length):
        self.calls.append('range')
        self.ranges.append((offset, length))
        if self.range_failures:
            failure = self.range_failures.pop(0)
            if failure is not None:
                raise failure

        file_id = location.url.rsplit('/', 1)[-1]
        data = self.objects[file_id]
        end = offset + length
        if self.truncate_at is not None:
            end = min(end, self.truncate_at)
        return data[offset:end]


@pytest.fixture
def endpoint():
    """Returns an empty in-memory endpoint."""
    return InMemoryEndpoint()


@pytest.fixture
def events():
    """Collects TransferProgress snapshots; the list doubles as a callback."""
    class Recorder(list):
        def __call__(self, progress):
            self.append(progress)

        def __bool__(self):
            return True

    return Recorder()


@pytest.fixture
def payload():
    """Returns 100 KiB of random content."""
    return get_random_bytes(100 * 1024)


@pytest.fixture
def server_error():
    """Returns a retryable 503 error."""
    return DriveRequestError("HTTP 503: Backend Error", status=503)


@pytest.fixture
def sample_file_resource():
    """Returns a Drive v2 file resource as the API sends it."""
    return {
        'kind': 'drive#file',
        'id': '0B1abcdEFGhijk',
        'title': 'backup.tar.gz',
        'mimeType': 'application/x-gzip',
        'fileSize': '31457280',
        'md5Checksum': '9e107d9d372bb6826bd81d3542a419d6',
        'modifiedDate': '2024-03-01T12:30:00.000Z',
        'lastModifyingUserName': 'Backup Bot',
        'downloadUrl': 'https://doc-0s.googleusercontent.com/download/abc'
    }


@pytest.fixture
def pipe_reader():
    """Returns the PipeReader class, to build readers over test data."""
    return PipeReader


@pytest.fixture
def memory_writer():
    """Returns an empty in-memory writable."""
    return MemoryWriter()
