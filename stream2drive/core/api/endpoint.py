"""
Drive v2 REST endpoint.

Implements the RemoteEndpoint protocol (resumable PUT, ranged GET) plus
the name lookups and listings the CLI needs, over a shared aiohttp session.
"""
import asyncio
import gzip
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

import aiohttp

from .config import APIConfig
from .models import FOLDER_MIME_TYPE, DownloadLocation, FileMetadata, UploadSession
from ..auth import TokenCredentials
from ..exceptions import (
    AmbiguousResourceError,
    DriveAuthError,
    DriveException,
    DriveRequestError,
    ResourceNotFoundError,
)
from ..logging import get_logger
from ..transfer.models import MediaMetadata

logger = get_logger(__name__)

# Resumable upload status code for "chunk stored, send more"
RESUME_INCOMPLETE = 308


def quote_literal(value: str) -> str:
    """Quote a string for use inside a Drive query."""
    escaped = value.replace('\\', '\\\\').replace("'", "\\'")
    return f"'{escaped}'"


def content_range(offset: int, length: int, total: Optional[int]) -> str:
    """
    Build the Content-Range header of a resumable chunk.

    Args:
        offset: Stream offset of the first byte
        length: Chunk length (0 for a pure status/finalize request)
        total: Total stream length, None while still unknown

    Returns:
        e.g. 'bytes 0-1023/4096', 'bytes 0-1023/*' or 'bytes */4096'
    """
    total_str = '*' if total is None else str(total)
    if length == 0:
        return f"bytes */{total_str}"
    return f"bytes {offset}-{offset + length - 1}/{total_str}"


def parse_range_header(value: Optional[str]) -> int:
    """
    Parse the Range header of a 308 response into a committed byte count.

    'bytes=0-1048575' means 1048576 bytes stored; no header means none.
    """
    if not value:
        return 0
    try:
        _, span = value.split('=', 1)
        _, last = span.split('-', 1)
        return int(last) + 1
    except ValueError:
        raise DriveRequestError(f"Malformed Range header: {value!r}") from None


@dataclass(frozen=True)
class _Response:
    status: int
    headers: Mapping[str, str]
    body: bytes

    def json(self) -> Any:
        return json.loads(self.body.decode('utf-8')) if self.body else {}


class DriveEndpoint:
    """
    Drive v2 endpoint.

    Reuses one HTTP session for every request. The session is owned by
    the caller (DriveClient).

    Example:
        >>> async with aiohttp.ClientSession() as http:
        ...     endpoint = DriveEndpoint(http, credentials)
        ...     folder_id = await endpoint.resolve_folder("backups")
    """

    PAGE_SIZE = 1000

    def __init__(
        self,
        session: aiohttp.ClientSession,
        credentials: TokenCredentials,
        config: Optional[APIConfig] = None
    ):
        self._session = session
        self._credentials = credentials
        self._config = config or APIConfig.default()

    # =========================================================================
    # HTTP plumbing
    # =========================================================================

    async def _send(
        self,
        method: str,
        url: str,
        expected: Tuple[int, ...] = (200,),
        headers: Optional[Dict[str, str]] = None,
        **kwargs
    ) -> _Response:
        request_headers = self._credentials.apply(dict(headers or {}))
        try:
            async with self._session.request(
                method,
                url,
                headers=request_headers,
                **kwargs
            ) as resp:
                body = await resp.read()
                response = _Response(resp.status, resp.headers, body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DriveRequestError(f"{method} {url} failed: {str(e) or type(e).__name__}") from e

        if response.status not in expected:
            self._raise_for_status(method, url, response)
        return response

    @staticmethod
    def _raise_for_status(method: str, url: str, response: _Response) -> None:
        message = f"HTTP {response.status}"
        try:
            error = response.json().get('error', {})
            if isinstance(error, dict) and error.get('message'):
                message = f"{message}: {error['message']}"
        except (ValueError, AttributeError):
            pass

        logger.debug(f"{method} {url} -> {message}")
        if response.status == 401:
            raise DriveAuthError(f"Drive rejected the access token ({message})", response.status)
        raise DriveRequestError(message, status=response.status)

    # =========================================================================
    # Metadata
    # =========================================================================

    async def query(self, q: str) -> List[FileMetadata]:
        """
        Run a Drive search query, following every result page.

        Args:
            q: Drive v2 query string

        Returns:
            All matching files
        """
        items: List[FileMetadata] = []
        params = {'q': q, 'maxResults': str(self.PAGE_SIZE)}

        while True:
            response = await self._send('GET', f"{self._config.api_url}files", params=params)
            data = response.json()
            items.extend(FileMetadata.from_dict(item) for item in data.get('items', []))

            token = data.get('nextPageToken')
            if not token:
                break
            params = {**params, 'pageToken': token}

        logger.debug(f"Query {q!r} matched {len(items)} files")
        return items

    async def get_file(self, file_id: str) -> FileMetadata:
        """Fetch one file resource by id."""
        try:
            response = await self._send('GET', f"{self._config.api_url}files/{file_id}")
        except DriveRequestError as e:
            if e.status == 404:
                raise ResourceNotFoundError(f"File '{file_id}' not found", file_id) from e
            raise
        return FileMetadata.from_dict(response.json())

    async def resolve_folder(self, name: str) -> str:
        """
        Resolve a folder title to its id.

        Raises:
            ResourceNotFoundError: If no folder has this title
            AmbiguousResourceError: If several folders have this title
        """
        folders = await self.query(
            f"title={quote_literal(name)} and mimeType='{FOLDER_MIME_TYPE}' and trashed=false"
        )
        if not folders:
            raise ResourceNotFoundError(f"Folder '{name}' not found", name, kind='folder')
        if len(folders) > 1:
            raise AmbiguousResourceError(
                f"Folder '{name}' matched more than one folder", name, kind='folder'
            )
        return folders[0].id

    async def find_file(self, name: str, parent_id: str = 'root') -> FileMetadata:
        """
        Find a non-folder file by title inside a folder.

        Raises:
            ResourceNotFoundError: If no file has this title
            AmbiguousResourceError: If several files have this title
        """
        files = await self.query(
            f"title={quote_literal(name)} and {quote_literal(parent_id)} in parents "
            f"and mimeType!='{FOLDER_MIME_TYPE}' and trashed=false"
        )
        if not files:
            raise ResourceNotFoundError(f"File '{name}' not found", name)
        if len(files) > 1:
            raise AmbiguousResourceError(f"File '{name}' matched more than one document", name)
        return files[0]

    async def list_files(self, parent_id: str = 'root') -> List[FileMetadata]:
        """List the non-folder, non-trashed files of a folder."""
        return await self.query(
            f"{quote_literal(parent_id)} in parents "
            f"and mimeType!='{FOLDER_MIME_TYPE}' and trashed=false"
        )

    # =========================================================================
    # Resumable upload
    # =========================================================================

    async def begin_resumable_upload(
        self,
        metadata: MediaMetadata,
        total_bytes: Optional[int] = None
    ) -> UploadSession:
        """Open a resumable upload session and return its URI."""
        headers = {'X-Upload-Content-Type': metadata.mime_type}
        if total_bytes is not None:
            headers['X-Upload-Content-Length'] = str(total_bytes)

        response = await self._send(
            'POST',
            f"{self._config.upload_url}files",
            params={'uploadType': 'resumable'},
            headers=headers,
            json=metadata.to_dict()
        )

        location = response.headers.get('Location')
        if not location:
            raise DriveRequestError("Could not obtain upload session URL", status=response.status)
        return UploadSession(url=location, total_bytes=total_bytes)

    async def upload_chunk(
        self,
        session: UploadSession,
        offset: int,
        data: bytes,
        is_final: bool,
        compress: bool = False
    ) -> Optional[FileMetadata]:
        """
        PUT one chunk to the session.

        Returns:
            The created file once the final chunk is stored, None before

        Raises:
            DriveRequestError: If the request fails or the server stored
                less than the whole chunk
        """
        total = offset + len(data) if is_final else session.total_bytes
        headers = {'Content-Range': content_range(offset, len(data), total)}

        body = data
        if compress and data:
            body = gzip.compress(data)
            headers['Content-Encoding'] = 'gzip'

        response = await self._send(
            'PUT',
            session.url,
            expected=(200, 201, RESUME_INCOMPLETE),
            headers=headers,
            data=body,
            # 308 is a resumable status here, not a redirect
            allow_redirects=False
        )

        if response.status != RESUME_INCOMPLETE:
            return FileMetadata.from_dict(response.json())

        if is_final:
            raise DriveRequestError("Server expects more data after the final chunk")

        committed = parse_range_header(response.headers.get('Range'))
        if committed != offset + len(data):
            # status None: the retry path queries the offset and resumes
            raise DriveRequestError(
                f"Server stored {committed} bytes, expected {offset + len(data)}"
            )
        return None

    async def query_upload_offset(self, session: UploadSession) -> int:
        """Ask the server how many bytes of the session it has stored."""
        response = await self._send(
            'PUT',
            session.url,
            expected=(200, 201, RESUME_INCOMPLETE),
            headers={'Content-Range': content_range(0, 0, session.total_bytes)},
            allow_redirects=False
        )

        if response.status == RESUME_INCOMPLETE:
            return parse_range_header(response.headers.get('Range'))
        raise DriveRequestError("Upload session is already complete", status=response.status)

    # =========================================================================
    # Ranged download
    # =========================================================================

    async def resolve_download_location(self, file_id: str) -> DownloadLocation:
        """Resolve the transient content URL and size of a file."""
        meta = await self.get_file(file_id)

        if meta.file_size is None:
            raise DriveException(f"'{meta.title}' has no downloadable content")

        url = meta.download_url or f"{self._config.api_url}files/{file_id}?alt=media"
        return DownloadLocation(url=url, size=meta.file_size, md5_checksum=meta.md5_checksum)

    async def get_range(
        self,
        location: DownloadLocation,
        offset: int,
        length: int
    ) -> bytes:
        """GET bytes [offset, offset + length) of the content."""
        response = await self._send(
            'GET',
            location.url,
            expected=(200, 206),
            headers={'Range': f"bytes={offset}-{offset + length - 1}"}
        )
        return response.body
