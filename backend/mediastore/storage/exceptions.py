"""
Storage-specific exceptions.

All errors raised by the storage layer derive from StorageError so callers
can branch on "is this a storage failure" without knowing the exact kind.
"""


class StorageError(Exception):
    """Base exception for storage operations."""

    pass


class ConfigurationError(StorageError):
    """Raised when storage is missing required setup (region, bucket, provider)."""

    pass


class UploadError(StorageError):
    """Raised when writing an object to storage fails."""

    pass
