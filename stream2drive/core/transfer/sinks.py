"""
Download sinks.

A sink owns the local destination for the duration of a download and is
released on every exit path.
"""
from pathlib import Path
from typing import Optional, Union

import aiofiles
from Crypto.Hash import MD5

from .protocols import DownloadSink, WritableHandle
from ..exceptions import DestinationExistsError
from ..logging import get_logger

logger = get_logger(__name__)


class FileSink:
    """
    A local file that must not exist yet.

    The file is created exclusively, so a file appearing between the
    existence check and the first write is still never overwritten.
    """

    def __init__(self, file_path: Union[str, Path]):
        self._path = Path(file_path) if isinstance(file_path, str) else file_path
        self._handle = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def name(self) -> str:
        return str(self._path)

    def exists(self) -> bool:
        return self._path.exists()

    async def open(self) -> None:
        try:
            self._handle = await aiofiles.open(self._path, 'xb')
        except FileExistsError:
            raise DestinationExistsError(self._path) from None

    async def write(self, data: bytes) -> None:
        await self._handle.write(data)

    async def close(self, success: bool = True) -> None:
        if self._handle is None:
            return
        try:
            if success:
                await self._handle.flush()
        finally:
            await self._handle.close()
            self._handle = None
            if not success:
                logger.debug(f"Removing partial download {self._path}")
                self._path.unlink(missing_ok=True)


class StreamSink:
    """
    An already-open output stream, standard output by default.

    Never "exists", and is flushed but not closed: the stream belongs to the
    process.
    """

    def __init__(self, handle: Optional[WritableHandle] = None, name: str = '-'):
        self._handle = handle
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def exists(self) -> bool:
        return False

    async def open(self) -> None:
        if self._handle is None:
            self._handle = aiofiles.stdout_bytes

    async def write(self, data: bytes) -> None:
        await self._handle.write(data)

    async def close(self, success: bool = True) -> None:
        if self._handle is not None:
            await self._handle.flush()


class HashingSink:
    """
    Wraps another sink and computes the MD5 of everything written.

    Used to check downloads against the md5Checksum Drive reports.
    """

    def __init__(self, inner: DownloadSink):
        self._inner = inner
        self._md5 = MD5.new()

    @property
    def name(self) -> str:
        return self._inner.name

    @property
    def hexdigest(self) -> str:
        return self._md5.hexdigest()

    def exists(self) -> bool:
        return self._inner.exists()

    async def open(self) -> None:
        await self._inner.open()

    async def write(self, data: bytes) -> None:
        self._md5.update(data)
        await self._inner.write(data)

    async def close(self, success: bool = True) -> None:
        await self._inner.close(success)
