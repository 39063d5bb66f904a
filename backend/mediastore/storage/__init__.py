"""
Storage module for S3-compatible object storage.

Exposes the provider contract, the S3 implementation and the factory that
selects a provider from configuration.
"""
from mediastore.storage.base import (
    StorageConfig,
    StorageProvider,
    UploadFileParams,
    UploadFileResult,
    PresignedUploadUrlParams,
)
from mediastore.storage.exceptions import StorageError, ConfigurationError, UploadError
from mediastore.storage.factory import StorageProviderKind, create_storage_provider
from mediastore.storage.s3_provider import S3Provider

__all__ = [
    "StorageConfig",
    "StorageProvider",
    "UploadFileParams",
    "UploadFileResult",
    "PresignedUploadUrlParams",
    "StorageError",
    "ConfigurationError",
    "UploadError",
    "StorageProviderKind",
    "create_storage_provider",
    "S3Provider",
]
