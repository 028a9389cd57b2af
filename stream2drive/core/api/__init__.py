"""Drive API module."""
from .config import (
    APIConfig,
    TimeoutConfig,
    RetryConfig,
    TransferConfig,
    DEFAULT_CHUNK_SIZE,
    CHUNK_GRANULARITY,
    default_config_dir
)
from .models import FileMetadata, UploadSession, DownloadLocation, FOLDER_MIME_TYPE
from .retry import RetryStrategy, NoRetryStrategy, ExponentialBackoffStrategy, retry_strategy_for
from .endpoint import DriveEndpoint, content_range, parse_range_header, quote_literal

__all__ = [
    # Endpoint
    'DriveEndpoint',
    'content_range',
    'parse_range_header',
    'quote_literal',

    # Models
    'FileMetadata',
    'UploadSession',
    'DownloadLocation',
    'FOLDER_MIME_TYPE',

    # Configuration
    'APIConfig',
    'TimeoutConfig',
    'RetryConfig',
    'TransferConfig',
    'DEFAULT_CHUNK_SIZE',
    'CHUNK_GRANULARITY',
    'default_config_dir',

    # Retry
    'RetryStrategy',
    'NoRetryStrategy',
    'ExponentialBackoffStrategy',
    'retry_strategy_for',
]
