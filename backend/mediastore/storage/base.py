"""
Base types for storage providers.
All providers must implement StorageProvider so the API layer can use any
backend without knowing which one is configured.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Union

# Raw bytes, or a file-like object whose read() returns bytes (sync or async)
FilePayload = Union[bytes, bytearray, memoryview, Any]

DEFAULT_PRESIGN_EXPIRATION = 3600  # 1 hour
SIGNED_READ_URL_EXPIRATION = 3600 * 24 * 7  # 7 days


@dataclass(frozen=True)
class StorageConfig:
    """Storage credentials and endpoint settings. Immutable once loaded."""
    region: str
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    endpoint: Optional[str] = None
    public_url: Optional[str] = None
    force_path_style: bool = True
    provider: str = "s3"


@dataclass
class UploadFileParams:
    """Parameters for a server-side upload."""
    file: FilePayload
    filename: str
    content_type: str
    folder: Optional[str] = None


@dataclass
class UploadFileResult:
    """Resolvable URL and storage key of an object."""
    url: str
    key: str


@dataclass
class PresignedUploadUrlParams:
    """Parameters for a direct-to-storage upload URL."""
    filename: str
    content_type: str
    folder: Optional[str] = None
    expires_in: int = DEFAULT_PRESIGN_EXPIRATION


class StorageProvider(ABC):
    """
    Abstract base class for storage providers.

    All providers must implement:
    - upload_file(): Store bytes and return {url, key}
    - delete_file(): Remove an object (idempotent)
    - get_presigned_upload_url(): Time-limited PUT URL for direct uploads
    - get_file_url(): Resolvable URL for an existing key
    - get_provider_name(): Fixed name for diagnostics

    is_configured() defaults to True; providers with required settings override it.
    """

    @abstractmethod
    async def upload_file(self, params: UploadFileParams) -> UploadFileResult:
        """
        Upload a file to storage.

        Args:
            params: File payload and metadata

        Returns:
            UploadFileResult with a resolvable URL and the generated key

        Raises:
            ConfigurationError: If storage is not configured
            UploadError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_file(self, key: str) -> None:
        """
        Delete a file from storage.

        Succeeds if the object does not exist.

        Raises:
            ConfigurationError: If storage is not configured
            StorageError: If the delete fails
        """
        pass

    @abstractmethod
    async def get_presigned_upload_url(
        self,
        params: PresignedUploadUrlParams
    ) -> UploadFileResult:
        """
        Generate a pre-signed URL the client can PUT the raw file to.

        Returns:
            UploadFileResult with the signed PUT URL and the eventual key

        Raises:
            ConfigurationError: If storage is not configured
            StorageError: If signing fails
        """
        pass

    @abstractmethod
    async def get_file_url(self, key: str) -> UploadFileResult:
        """
        Resolve the access URL for an existing object.

        Returns a public URL when a public base is configured, otherwise a
        freshly signed GET URL.
        """
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """Get the provider's name."""
        pass

    def is_configured(self) -> bool:
        """Whether the provider has the settings it needs to reach storage."""
        return True
