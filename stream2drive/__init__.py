"""
stream2drive - Stream files and pipes to and from Google Drive.

Usage:
    >>> from stream2drive import DriveClient
    >>>
    >>> async with DriveClient() as drive:
    ...     await drive.upload("-", name="dump.sql.gz")
"""
import logging
from .client import DriveClient, guess_mime_type

# Configuration
from .core.api import (
    APIConfig,
    TimeoutConfig,
    RetryConfig,
    TransferConfig,
    DriveEndpoint,
    FileMetadata
)
from .core.auth import TokenCredentials, load_credentials

# Transfer engine
from .core.transfer import (
    TransferEngine,
    TransferProgress,
    TransferResult,
    ProgressEvent,
    MediaMetadata
)

from .core.exceptions import (
    DriveException,
    DriveAuthError,
    DriveRequestError,
    ResourceNotFoundError,
    AmbiguousResourceError,
    DestinationExistsError,
    TransferError,
    RetryNotSupportedError
)

__version__ = '1.0.0'

PACKAGE_LOGGERS = [
    'stream2drive',
    'stream2drive.client',
    'stream2drive.core.auth',
    'stream2drive.core.api.endpoint',
    'stream2drive.core.transfer.engine',
    'stream2drive.core.transfer.sources',
    'stream2drive.core.transfer.sinks',
]


def setup_logging(level=logging.INFO):
    """
    Configure logging for stream2drive modules.

    Sets the level of the package loggers and makes sure a root handler
    exists so their records are shown.

    Args:
        level: Logging level (default: logging.INFO)
    """
    for name in PACKAGE_LOGGERS:
        logging.getLogger(name).setLevel(level)

    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )


__all__ = [
    'DriveClient',
    'guess_mime_type',
    'APIConfig',
    'TimeoutConfig',
    'RetryConfig',
    'TransferConfig',
    'DriveEndpoint',
    'FileMetadata',
    'TokenCredentials',
    'load_credentials',
    'TransferEngine',
    'TransferProgress',
    'TransferResult',
    'ProgressEvent',
    'MediaMetadata',
    'DriveException',
    'DriveAuthError',
    'DriveRequestError',
    'ResourceNotFoundError',
    'AmbiguousResourceError',
    'DestinationExistsError',
    'TransferError',
    'RetryNotSupportedError',
    'setup_logging',
    'PACKAGE_LOGGERS',
    '__version__',
]
