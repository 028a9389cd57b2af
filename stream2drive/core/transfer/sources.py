"""
Upload stream adapters.

Single Responsibility: each class wraps one kind of input and presents the
StreamSource contract to the engine.
"""
from pathlib import Path
from typing import Optional, Union

import aiofiles

from .protocols import ReadableHandle
from ..logging import get_logger

STDIO_NAME = '-'

logger = get_logger(__name__)


class SeekableFileSource:
    """
    A regular local file.

    The length is known up front and bytes can be read again after a failed
    chunk, so chunk retries are possible.
    """

    def __init__(self, file_path: Union[str, Path]):
        path = Path(file_path) if isinstance(file_path, str) else file_path

        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        if not path.is_file():
            raise IsADirectoryError(f"Path is not a file: {path}")

        self._path = path
        self._length = path.stat().st_size
        self._handle = None
        self._opened = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def name(self) -> str:
        return self._path.name

    @property
    def length(self) -> Optional[int]:
        return self._length

    @property
    def retry_supported(self) -> bool:
        return True

    async def open(self) -> ReadableHandle:
        if self._opened:
            raise RuntimeError(f"Source {self._path} was already opened")
        self._opened = True
        self._handle = await aiofiles.open(self._path, 'rb')
        logger.debug(f"Opened {self._path} ({self._length} bytes)")
        return self._handle

    async def seek(self, offset: int) -> None:
        if self._handle is None:
            raise RuntimeError("Source is not open")
        await self._handle.seek(offset)

    async def close(self) -> None:
        if self._handle is not None:
            await self._handle.close()
            self._handle = None


class SequentialStreamSource:
    """
    A forward-only stream such as standard input or a pipe.

    Length is unknown and every byte can be read exactly once, so a failed
    chunk can never be re-sent from the source.
    """

    def __init__(self, handle: Optional[ReadableHandle] = None, name: str = STDIO_NAME):
        """
        Args:
            handle: Async readable handle (defaults to binary stdin)
            name: Display name
        """
        self._handle = handle
        self._name = name
        self._opened = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def length(self) -> Optional[int]:
        return None

    @property
    def retry_supported(self) -> bool:
        return False

    async def open(self) -> ReadableHandle:
        if self._opened:
            raise RuntimeError(f"Source {self._name} was already opened")
        self._opened = True
        if self._handle is None:
            self._handle = aiofiles.stdin_bytes
        return self._handle

    async def seek(self, offset: int) -> None:
        raise OSError(f"Cannot seek in sequential source {self._name}")

    async def close(self) -> None:
        # stdin belongs to the process
        self._handle = None


def open_source(file_arg: Union[str, Path]):
    """Create the source for a CLI file argument ('-' means stdin)."""
    if str(file_arg) == STDIO_NAME:
        return SequentialStreamSource()
    return SeekableFileSource(file_arg)
