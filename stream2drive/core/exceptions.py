"""
Custom exceptions for Drive transfer operations.

Every error raised by stream2drive derives from DriveException so the CLI
driver can report it with a single handler.
"""
from typing import Optional


class DriveException(Exception):
    """Base exception for all stream2drive errors."""

    def __init__(self, message: str, error_code: Optional[int] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            error_code: Numeric error code (if available)
        """
        self.error_code = error_code
        super().__init__(message)


class DriveAuthError(DriveException):
    """Exception raised when credentials are missing or rejected."""
    pass


class DriveRequestError(DriveException):
    """Exception raised when a request to Drive fails.

    `status` is the HTTP status code, or None when the request never got a
    response (connection reset, timeout, DNS failure).
    """

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        self.status = status
        super().__init__(message, error_code=status)


class RemoteLookupError(DriveException):
    """Exception raised when a named remote resource cannot be resolved."""

    def __init__(self, message: str, name: str, kind: str = "file") -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            name: The title that was looked up
            kind: 'file' or 'folder'
        """
        self.name = name
        self.kind = kind
        super().__init__(message)


class ResourceNotFoundError(RemoteLookupError):
    """No remote resource matched the name."""
    pass


class AmbiguousResourceError(RemoteLookupError):
    """More than one remote resource matched the name."""
    pass


class DestinationExistsError(DriveException):
    """Exception raised when a download would overwrite a local file."""

    def __init__(self, path) -> None:
        self.path = path
        super().__init__(f"Destination '{path}' already exists")


class TransferError(DriveException):
    """Exception raised when moving bytes between the stream and Drive fails."""

    def __init__(self, message: str, bytes_transferred: int = 0) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            bytes_transferred: Bytes acknowledged before the failure
        """
        self.bytes_transferred = bytes_transferred
        super().__init__(message)


class RetryNotSupportedError(TransferError):
    """A failed chunk came from a source that cannot be read again."""
    pass
