"""
Transfer engine.

Drives the chunked request/response loop for uploads and downloads.
Chunks are strictly sequential: one request in flight, one buffer per
session, the source or sink released on every exit path.
"""
import time
from typing import Optional

from .buffer import ChunkBuffer
from .models import (
    ChunkInfo,
    Direction,
    MediaMetadata,
    ProgressEvent,
    TransferResult,
    TransferSession,
    TransferState,
)
from .protocols import DownloadSink, ProgressCallback, RemoteEndpoint, StreamSource
from ..api.config import DEFAULT_CHUNK_SIZE
from ..api.models import DownloadLocation, UploadSession
from ..api.retry import NoRetryStrategy, RetryStrategy
from ..logging import get_logger
from ..exceptions import (
    DestinationExistsError,
    DriveRequestError,
    RetryNotSupportedError,
    TransferError,
)

logger = get_logger(__name__)


class TransferEngine:
    """
    Moves byte streams between local sources/sinks and a RemoteEndpoint.

    Uses dependency injection for the endpoint and retry policy, making it
    testable against an in-memory endpoint.

    Example:
        >>> engine = TransferEngine(endpoint)
        >>> source = SeekableFileSource("backup.tar")
        >>> result = await engine.upload(source, MediaMetadata("backup.tar"))
        >>> print(result.bytes_transferred)
    """

    def __init__(
        self,
        endpoint: RemoteEndpoint,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        retry_strategy: Optional[RetryStrategy] = None,
        compress_seekable_uploads: bool = True
    ):
        """
        Initialize transfer engine.

        Args:
            endpoint: Remote object store
            chunk_size: Bytes per chunk, fixed for every session
            retry_strategy: Chunk retry policy (no retries by default)
            compress_seekable_uploads: gzip chunks read from regular files
        """
        if chunk_size <= 0:
            raise ValueError("Chunk size must be positive")
        self._endpoint = endpoint
        self._chunk_size = chunk_size
        self._retry = retry_strategy or NoRetryStrategy()
        self._compress_seekable = compress_seekable_uploads

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    # =========================================================================
    # Upload
    # =========================================================================

    async def upload(
        self,
        source: StreamSource,
        metadata: MediaMetadata,
        progress_callback: Optional[ProgressCallback] = None
    ) -> TransferResult:
        """
        Upload a source through a resumable session.

        Args:
            source: Seekable file or sequential stream
            metadata: Title, MIME type and parent of the new object
            progress_callback: Receives initiation-started,
                initiation-complete, in-progress per chunk, complete

        Returns:
            TransferResult with the created file

        Raises:
            TransferError: If reading the source or sending a chunk fails
            RetryNotSupportedError: If a chunk of a sequential source fails
                while retries are enabled
        """
        session = TransferSession(Direction.UPLOAD, self._chunk_size, source.length)
        # Compressing an unseekable stream ruins throughput
        compress = self._compress_seekable and source.retry_supported
        size_desc = f"{session.total_bytes} bytes" if session.length_known else "unknown length"
        logger.info(f"Starting upload: {source.name} -> {metadata.title} ({size_desc})")

        buffer = ChunkBuffer(self._chunk_size)
        upload_start = time.time()
        try:
            self._notify(progress_callback, session, ProgressEvent.INITIATION_STARTED)
            handle = await source.open()
            upload_session = await self._endpoint.begin_resumable_upload(
                metadata, session.total_bytes
            )
            logger.debug(f"Resumable session opened: {upload_session.url}")
            self._notify(progress_callback, session, ProgressEvent.INITIATION_COMPLETE)
            session.state = TransferState.IN_PROGRESS

            remote_file = None
            attempts = 0
            while True:
                offset = session.bytes_transferred
                try:
                    count, eof = await buffer.fill(handle, session.next_request_size())
                except OSError as e:
                    raise TransferError(
                        f"Failed to read {source.name}: {e}",
                        bytes_transferred=offset
                    ) from e

                if session.length_known:
                    if eof and offset + count < session.total_bytes:
                        raise TransferError(
                            f"{source.name} ended after {offset + count} of "
                            f"{session.total_bytes} bytes",
                            bytes_transferred=offset
                        )
                    is_final = offset + count == session.total_bytes
                else:
                    is_final = eof

                chunk_start = time.time()
                try:
                    remote_file = await self._endpoint.upload_chunk(
                        upload_session, offset, buffer.getvalue(), is_final, compress=compress
                    )
                except DriveRequestError as error:
                    committed = await self._recover_upload(
                        error, source, upload_session, session, attempts
                    )
                    attempts += 1
                    if committed > offset:
                        session.advance(committed - offset)
                        self._notify(progress_callback, session, ProgressEvent.MEDIA_IN_PROGRESS)
                    await source.seek(committed)
                    continue

                attempts = 0
                chunk = ChunkInfo(session.chunks, offset, offset + count, is_final)
                elapsed = time.time() - chunk_start
                logger.debug(
                    f"Chunk {chunk.index} [{chunk.start}, {chunk.end}) ({chunk.size} bytes"
                    f"{', final' if chunk.is_final else ''}) sent in {elapsed:.2f}s"
                )

                if count:
                    session.advance(count)
                    self._notify(progress_callback, session, ProgressEvent.MEDIA_IN_PROGRESS)

                if is_final:
                    break

            session.state = TransferState.COMPLETE
            self._notify(progress_callback, session, ProgressEvent.MEDIA_COMPLETE)
        except Exception as e:
            session.state = TransferState.FAILED
            logger.error(
                f"Upload of {source.name} failed after {session.bytes_transferred} bytes: {e}"
            )
            raise
        finally:
            buffer.clear()
            await source.close()

        total_mb = session.bytes_transferred / (1024 * 1024)
        logger.info(
            f"Upload complete: {metadata.title}, {session.chunks} chunks, "
            f"{total_mb:.2f} MB in {time.time() - upload_start:.2f}s"
        )
        return TransferResult(
            direction=Direction.UPLOAD,
            bytes_transferred=session.bytes_transferred,
            chunks=session.chunks,
            file=remote_file
        )

    async def _recover_upload(
        self,
        error: DriveRequestError,
        source: StreamSource,
        upload_session: UploadSession,
        session: TransferSession,
        attempts: int
    ) -> int:
        """
        Decide whether a failed chunk can be retried.

        Returns:
            The offset the server has committed, to resume from

        Raises:
            TransferError: If retries are exhausted or disabled
            RetryNotSupportedError: If the source cannot be read again
        """
        offset = session.bytes_transferred
        if not self._retry.should_retry(error, attempts):
            raise TransferError(
                f"Chunk at offset {offset} failed: {error}",
                bytes_transferred=offset
            ) from error

        if not source.retry_supported:
            raise RetryNotSupportedError(
                f"Chunk at offset {offset} failed and {source.name} cannot be read again: {error}",
                bytes_transferred=offset
            ) from error

        logger.warning(f"Chunk at offset {offset} failed ({error}), retry {attempts + 1}")
        await self._retry.wait_async(attempts)

        try:
            committed = await self._endpoint.query_upload_offset(upload_session)
        except DriveRequestError as e:
            raise TransferError(
                f"Could not query upload status: {e}",
                bytes_transferred=offset
            ) from e

        if committed < offset or (session.length_known and committed > session.total_bytes):
            raise TransferError(
                f"Server committed {committed} bytes, expected at least {offset}",
                bytes_transferred=offset
            )

        logger.debug(f"Resuming upload at offset {committed}")
        return committed

    # =========================================================================
    # Download
    # =========================================================================

    async def download(
        self,
        file_id: str,
        sink: DownloadSink,
        progress_callback: Optional[ProgressCallback] = None
    ) -> TransferResult:
        """
        Download a remote object with ranged GETs.

        Args:
            file_id: Remote object id
            sink: Local destination (file or stdout)
            progress_callback: Receives in-progress per chunk, then complete

        Returns:
            TransferResult with the number of bytes written

        Raises:
            DestinationExistsError: If the sink would overwrite a local file;
                raised before any network call
            TransferError: If a range request or a sink write fails
        """
        if sink.exists():
            raise DestinationExistsError(sink.name)

        location = await self._endpoint.resolve_download_location(file_id)
        session = TransferSession(Direction.DOWNLOAD, self._chunk_size, location.size)
        session.state = TransferState.IN_PROGRESS
        logger.info(f"Starting download: {file_id} -> {sink.name} ({location.size} bytes)")

        download_start = time.time()
        success = False
        await sink.open()
        try:
            while session.remaining > 0:
                offset = session.bytes_transferred
                want = session.next_request_size()
                data = await self._fetch_range(location, offset, want)

                if not data:
                    raise TransferError(
                        f"Server returned no data at offset {offset}",
                        bytes_transferred=offset
                    )
                if len(data) > want:
                    raise TransferError(
                        f"Server returned {len(data)} bytes for a {want} byte range",
                        bytes_transferred=offset
                    )

                try:
                    await sink.write(data)
                except OSError as e:
                    raise TransferError(
                        f"Failed to write {sink.name}: {e}",
                        bytes_transferred=offset
                    ) from e

                session.advance(len(data))
                self._notify(progress_callback, session, ProgressEvent.MEDIA_IN_PROGRESS)

                if len(data) < want:
                    break

            if session.bytes_transferred != location.size:
                raise TransferError(
                    f"Download ended after {session.bytes_transferred} of {location.size} bytes",
                    bytes_transferred=session.bytes_transferred
                )

            session.state = TransferState.COMPLETE
            self._notify(progress_callback, session, ProgressEvent.MEDIA_COMPLETE)
            success = True
        except Exception as e:
            session.state = TransferState.FAILED
            logger.error(
                f"Download of {file_id} failed after {session.bytes_transferred} bytes: {e}"
            )
            raise
        finally:
            await sink.close(success)

        total_mb = session.bytes_transferred / (1024 * 1024)
        logger.info(
            f"Download complete: {sink.name}, {session.chunks} chunks, "
            f"{total_mb:.2f} MB in {time.time() - download_start:.2f}s"
        )
        return TransferResult(
            direction=Direction.DOWNLOAD,
            bytes_transferred=session.bytes_transferred,
            chunks=session.chunks
        )

    async def _fetch_range(self, location: DownloadLocation, offset: int, length: int) -> bytes:
        """Ranged GET; ranges are idempotent so retries re-issue the same range."""
        attempts = 0
        while True:
            try:
                return await self._endpoint.get_range(location, offset, length)
            except DriveRequestError as error:
                if not self._retry.should_retry(error, attempts):
                    raise TransferError(
                        f"Range at offset {offset} failed: {error}",
                        bytes_transferred=offset
                    ) from error
                logger.warning(f"Range at offset {offset} failed ({error}), retry {attempts + 1}")
                await self._retry.wait_async(attempts)
                attempts += 1

    @staticmethod
    def _notify(
        callback: Optional[ProgressCallback],
        session: TransferSession,
        event: ProgressEvent
    ) -> None:
        if callback:
            callback(session.progress(event))
