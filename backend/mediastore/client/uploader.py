"""
Upload client for the storage API.

Picks one of two upload paths by file size:
- PROXY (< 10MB): one multipart POST to /api/storage/upload
- PRESIGNED (>= 10MB): three sequential calls
    1. POST /api/storage/presigned-url  -> signed PUT URL + key
    2. PUT <signed url>                  -> bytes go straight to storage
    3. POST /api/storage/file-url       -> resolvable access URL

Any non-2xx response aborts the flow with UploadClientError carrying the
server's error message (or a per-step fallback if the body is unreadable).
"""
import logging
import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import httpx

from mediastore.storage.base import UploadFileResult

logger = logging.getLogger(__name__)

API_STORAGE_UPLOAD = "/api/storage/upload"
API_STORAGE_PRESIGNED_URL = "/api/storage/presigned-url"
API_STORAGE_FILE_URL = "/api/storage/file-url"

# Files at or above this size skip the API and go straight to storage
PRESIGNED_UPLOAD_THRESHOLD = 10 * 1024 * 1024  # 10MB


class UploadClientError(Exception):
    """Raised when any step of an upload fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class UploadStrategy(str, Enum):
    """How a file reaches storage."""
    PROXY = "proxy"
    PRESIGNED = "presigned"


def choose_strategy(size: int) -> UploadStrategy:
    """Files strictly under 10MB are proxied; 10MB and above use a pre-signed URL."""
    if size < PRESIGNED_UPLOAD_THRESHOLD:
        return UploadStrategy.PROXY
    return UploadStrategy.PRESIGNED


@dataclass
class UploadSource:
    """A file to upload: name, MIME type and the raw bytes."""
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: Union[str, Path], content_type: Optional[str] = None) -> "UploadSource":
        """Read a local file, guessing the MIME type from its name when not given."""
        path = Path(path)
        if content_type is None:
            content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return cls(filename=path.name, content_type=content_type, data=path.read_bytes())


class StorageUploadClient:
    """
    Async client for uploading files through the storage API.

    Usage:
        async with StorageUploadClient(base_url="https://api.example.com") as uploader:
            result = await uploader.upload(UploadSource.from_path("photo.png"), folder="avatars")
            print(result.url)
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def __aenter__(self) -> "StorageUploadClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def upload(self, file: UploadSource, folder: Optional[str] = None) -> UploadFileResult:
        """
        Upload a file, choosing the path by size.

        Args:
            file: File to upload
            folder: Optional folder prefix for the object key

        Returns:
            UploadFileResult with the access URL and storage key

        Raises:
            UploadClientError: If any step fails
        """
        strategy = choose_strategy(file.size)
        logger.debug(f"Uploading {file.filename} ({file.size} bytes) via {strategy.value}")

        try:
            if strategy is UploadStrategy.PROXY:
                return await self._upload_via_api(file, folder)
            return await self._upload_via_presigned_url(file, folder)
        except httpx.RequestError as e:
            raise UploadClientError(f"Request error: {e}") from e

    async def _upload_via_api(self, file: UploadSource, folder: Optional[str]) -> UploadFileResult:
        response = await self._client.post(
            API_STORAGE_UPLOAD,
            files={"file": (file.filename, file.data, file.content_type)},
            data={"folder": folder or ""},
        )
        await self._raise_for_status(response, "Failed to upload file")
        return self._parse_result(response)

    async def _upload_via_presigned_url(self, file: UploadSource, folder: Optional[str]) -> UploadFileResult:
        # 1. Ask the API for a signed PUT URL
        presigned_response = await self._client.post(
            API_STORAGE_PRESIGNED_URL,
            json={
                "filename": file.filename,
                "contentType": file.content_type,
                "folder": folder or "",
            },
        )
        await self._raise_for_status(presigned_response, "Failed to get pre-signed URL")
        presigned = self._parse_result(presigned_response)

        # 2. PUT the bytes straight to storage
        upload_response = await self._client.put(
            presigned.url,
            content=file.data,
            headers={"Content-Type": file.content_type},
        )
        if not upload_response.is_success:
            raise UploadClientError(
                "Failed to upload file using pre-signed URL",
                status_code=upload_response.status_code
            )

        # 3. Resolve the URL the file is reachable at
        file_url_response = await self._client.post(
            API_STORAGE_FILE_URL,
            json={"key": presigned.key},
        )
        await self._raise_for_status(file_url_response, "Failed to get file URL")
        return self._parse_result(file_url_response)

    @staticmethod
    async def _raise_for_status(response: httpx.Response, fallback: str) -> None:
        if response.is_success:
            return
        message = fallback
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("error") or body.get("message") or fallback
        logger.warning(f"Upload step failed ({response.status_code}): {message}")
        raise UploadClientError(message, status_code=response.status_code)

    @staticmethod
    def _parse_result(response: httpx.Response) -> UploadFileResult:
        try:
            body = response.json()
            return UploadFileResult(url=body["url"], key=body["key"])
        except (ValueError, KeyError, TypeError) as e:
            raise UploadClientError(
                "Invalid response from storage API",
                status_code=response.status_code
            ) from e
