"""
Custom exceptions for TeraBox upload operations.

This module defines the error taxonomy shared by every component of the
upload pipeline. Retry decisions are driven by the ``retryable`` flag.
"""
from typing import Optional


class TeraboxException(Exception):
    """Base exception for all TeraBox-related errors."""

    retryable = False

    def __init__(self, message: str, error_code: Optional[int] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            error_code: Numeric error code (if available)
        """
        self.error_code = error_code
        self.message = message
        super().__init__(message)


class ConfigurationError(TeraboxException):
    """Exception raised when required settings are missing or invalid."""
    pass


class ChunkingFailed(TeraboxException):
    """Exception raised when a file cannot be split, read or hashed."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        self.path = path
        super().__init__(message)


class QuotaDenied(TeraboxException):
    """
    Exception raised when the quota gate rejects an upload.

    Attributes:
        reason: ``InsufficientQuota`` or ``FileTooLarge``
        required: Bytes the upload needs
        limit: Bytes available (free space or max single-file size)
    """

    INSUFFICIENT_QUOTA = 'InsufficientQuota'
    FILE_TOO_LARGE = 'FileTooLarge'

    def __init__(self, reason: str, required: int, limit: int) -> None:
        self.reason = reason
        self.required = required
        self.limit = limit
        super().__init__(f"{reason}: required {required} bytes, limit {limit} bytes")


class TransportError(TeraboxException):
    """
    Exception raised for network failures.

    Covers connection errors, timeouts and non-2xx responses without a
    parseable error body.
    """

    retryable = True

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        self.status = status
        super().__init__(message)


class PrecreateRejected(TeraboxException):
    """Exception raised when the precreate call returns an error code."""

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        super().__init__(f"Precreate rejected (errno {code}): {message}", code)
        self.message = message


class PieceUploadFailed(TeraboxException):
    """Exception raised when a piece could not be transferred."""

    def __init__(self, index: int, message: str = '') -> None:
        self.index = index
        detail = f": {message}" if message else ''
        super().__init__(f"Piece {index} upload failed{detail}")


class PieceHashMissing(TeraboxException):
    """Raised when a piece upload response carries no md5 (retried)."""

    retryable = True


class FinalizeRejected(TeraboxException):
    """Exception raised when the create call returns a non-zero errno."""

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        super().__init__(f"Finalize rejected (errno {code}): {message}", code)
        self.message = message


class AuthExpired(PrecreateRejected):
    """Precreate rejection caused by expired or unverified credentials."""
    pass
