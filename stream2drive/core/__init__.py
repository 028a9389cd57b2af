"""Core building blocks: API endpoint, transfer engine, errors, logging."""
from .exceptions import (
    DriveException,
    DriveAuthError,
    DriveRequestError,
    RemoteLookupError,
    ResourceNotFoundError,
    AmbiguousResourceError,
    DestinationExistsError,
    TransferError,
    RetryNotSupportedError
)
from .logging import get_logger

__all__ = [
    'DriveException',
    'DriveAuthError',
    'DriveRequestError',
    'RemoteLookupError',
    'ResourceNotFoundError',
    'AmbiguousResourceError',
    'DestinationExistsError',
    'TransferError',
    'RetryNotSupportedError',
    'get_logger',
]
