"""
DriveClient - High-level async client for streaming to and from Drive.

Example:
    >>> async with DriveClient() as drive:
    ...     await drive.upload("backup.tar", parent_id=await drive.resolve_folder("backups"))
    ...     for f in await drive.list_files():
    ...         print(f.title)
"""
import mimetypes
from pathlib import Path
from typing import Optional, List, Union

import aiohttp

from .core.api import APIConfig, DriveEndpoint, FileMetadata, retry_strategy_for
from .core.auth import TokenCredentials, load_credentials
from .core.exceptions import DestinationExistsError, TransferError
from .core.logging import get_logger
from .core.transfer import (
    TransferEngine,
    TransferResult,
    MediaMetadata,
    ProgressCallback,
    FileSink,
    StreamSink,
    HashingSink,
    open_source
)
from .core.transfer.sources import STDIO_NAME

logger = get_logger(__name__)

DEFAULT_MIME_TYPE = 'application/octet-stream'


def guess_mime_type(name: str) -> str:
    """Guess a MIME type from a file name."""
    mime_type, _ = mimetypes.guess_type(name)
    return mime_type or DEFAULT_MIME_TYPE


class DriveClient:
    """
    High-level Drive client.

    Owns the HTTP session, the DriveEndpoint and the TransferEngine, and
    turns names into ids before handing work to the engine.
    """

    def __init__(
        self,
        config: Optional[APIConfig] = None,
        credentials: Optional[TokenCredentials] = None
    ):
        """
        Initialize client.

        Args:
            config: Client configuration (defaults from the environment)
            credentials: Access token (loaded from the config dir if omitted)
        """
        self._config = config or APIConfig.from_env()
        self._credentials = credentials
        self._http: Optional[aiohttp.ClientSession] = None
        self._endpoint: Optional[DriveEndpoint] = None
        self._engine: Optional[TransferEngine] = None

    @property
    def config(self) -> APIConfig:
        return self._config

    @property
    def endpoint(self) -> DriveEndpoint:
        if self._endpoint is None:
            raise RuntimeError("Client is not connected")
        return self._endpoint

    @property
    def engine(self) -> TransferEngine:
        if self._engine is None:
            raise RuntimeError("Client is not connected")
        return self._engine

    async def __aenter__(self) -> 'DriveClient':
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def connect(self) -> None:
        """Load credentials and open the HTTP session."""
        if self._credentials is None:
            self._credentials = load_credentials(self._config.config_dir)

        self._http = aiohttp.ClientSession(**self._config.get_session_kwargs())
        self._endpoint = DriveEndpoint(self._http, self._credentials, self._config)
        self._engine = TransferEngine(
            self._endpoint,
            chunk_size=self._config.transfer.chunk_size,
            retry_strategy=retry_strategy_for(self._config.retry),
            compress_seekable_uploads=self._config.transfer.compress_seekable_uploads
        )

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._http is not None and not self._http.closed:
            await self._http.close()
        self._http = None
        self._endpoint = None
        self._engine = None

    # =========================================================================
    # Lookup
    # =========================================================================

    async def resolve_folder(self, name: str) -> str:
        """Folder title -> folder id."""
        return await self.endpoint.resolve_folder(name)

    async def list_files(self, parent_id: Optional[str] = None) -> List[FileMetadata]:
        """List files of a folder (Drive root by default)."""
        return await self.endpoint.list_files(parent_id or 'root')

    # =========================================================================
    # Transfers
    # =========================================================================

    async def upload(
        self,
        file: Union[str, Path],
        name: Optional[str] = None,
        mime_type: Optional[str] = None,
        parent_id: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> TransferResult:
        """
        Upload a local file, or standard input when file is '-'.

        Args:
            file: Local path or '-'
            name: Remote title (defaults to the file's base name)
            mime_type: MIME type (guessed from the title if omitted)
            parent_id: Destination folder id (Drive root if omitted)
            progress_callback: Receives TransferProgress events

        Returns:
            TransferResult with the created file

        Raises:
            ValueError: If uploading stdin without a name
            FileNotFoundError: If the local file doesn't exist
            IsADirectoryError: If the path is not a regular file
        """
        if name is None:
            if str(file) == STDIO_NAME:
                raise ValueError("A remote name is required when uploading standard input")
            name = Path(file).name

        source = open_source(file)
        metadata = MediaMetadata(
            title=name,
            mime_type=mime_type or guess_mime_type(name),
            parent_id=parent_id
        )
        return await self.engine.upload(source, metadata, progress_callback)

    async def download(
        self,
        name: str,
        dest: Union[str, Path],
        parent_id: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
        verify: bool = True
    ) -> TransferResult:
        """
        Download a file by title, to a local path or to stdout when dest is '-'.

        The destination is checked before the name lookup, so an existing
        local file fails without any request being made.

        Args:
            name: Remote title
            dest: Local path or '-'
            parent_id: Folder to look in (Drive root if omitted)
            progress_callback: Receives TransferProgress events
            verify: Compare the content MD5 with the one Drive reports

        Raises:
            DestinationExistsError: If dest already exists
            ResourceNotFoundError, AmbiguousResourceError: If the lookup fails
            TransferError: If the transfer or the checksum check fails
        """
        if str(dest) == STDIO_NAME:
            sink = StreamSink()
        else:
            sink = FileSink(dest)

        if sink.exists():
            raise DestinationExistsError(sink.name)

        remote = await self.endpoint.find_file(name, parent_id or 'root')

        hashing = HashingSink(sink) if verify and remote.md5_checksum else None
        result = await self.engine.download(remote.id, hashing or sink, progress_callback)

        if hashing and hashing.hexdigest != remote.md5_checksum.lower():
            if isinstance(sink, FileSink):
                sink.path.unlink(missing_ok=True)
            raise TransferError(
                f"Checksum mismatch for '{name}': expected {remote.md5_checksum}, "
                f"got {hashing.hexdigest}",
                bytes_transferred=result.bytes_transferred
            )

        logger.info(f"Downloaded '{name}' ({result.bytes_transferred} bytes) to {sink.name}")
        return TransferResult(
            direction=result.direction,
            bytes_transferred=result.bytes_transferred,
            chunks=result.chunks,
            file=remote
        )
