"""
Amazon S3 / S3-compatible storage provider.

Uses boto3 with the S3 API, so it works with AWS S3 and compatible services
like Cloudflare R2 or MinIO (set a custom endpoint for those).

Two ways to get bytes into the bucket:
- upload_file(): the API receives the file and writes it (small files)
- get_presigned_upload_url(): the client PUTs directly to storage (large files)

boto3 is blocking, so every call to the client goes through
asyncio.to_thread to keep the event loop free.
"""
import asyncio
import inspect
import logging
import threading
import time
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from mediastore.storage.base import (
    SIGNED_READ_URL_EXPIRATION,
    FilePayload,
    PresignedUploadUrlParams,
    StorageConfig,
    StorageProvider,
    UploadFileParams,
    UploadFileResult,
)
from mediastore.storage.exceptions import ConfigurationError, StorageError, UploadError
from mediastore.storage.keys import generate_object_key
from mediastore.utils.logging import log_storage_failure, log_storage_operation
from mediastore.utils.metrics import (
    storage_operation_duration_seconds,
    storage_operations_total,
    storage_upload_bytes_total,
)

logger = logging.getLogger(__name__)

# Error codes S3-compatible services return for a missing object
_MISSING_OBJECT_CODES = {"404", "NoSuchKey", "NotFound"}


class S3Provider(StorageProvider):
    """
    Storage provider backed by an S3-compatible bucket.

    The boto3 client is created on first use and reused afterwards.
    Region and bucket are checked before every operation, so a missing
    setting surfaces as ConfigurationError instead of a network failure.
    """

    def __init__(self, config: StorageConfig):
        self._config = config
        self._client = None
        self._client_lock = threading.Lock()

    @property
    def config(self) -> StorageConfig:
        return self._config

    def get_provider_name(self) -> str:
        return "S3"

    # ------------------------------------------------------------------
    # Client lifecycle
    # ------------------------------------------------------------------

    def _get_client(self):
        """Get the memoized boto3 client, creating it on first use."""
        if self._client is not None:
            return self._client

        with self._client_lock:
            if self._client is not None:
                return self._client

            if not self._config.region:
                raise ConfigurationError("Storage region is not configured")

            client_kwargs = {
                "region_name": self._config.region,
                "aws_access_key_id": self._config.access_key_id,
                "aws_secret_access_key": self._config.secret_access_key,
            }

            # Custom endpoint for S3-compatible services like Cloudflare R2
            if self._config.endpoint:
                addressing_style = "path" if self._config.force_path_style else "virtual"
                client_kwargs["endpoint_url"] = self._config.endpoint
                client_kwargs["config"] = Config(
                    signature_version="s3v4",
                    s3={"addressing_style": addressing_style}
                )
            else:
                client_kwargs["config"] = Config(signature_version="s3v4")

            self._client = boto3.client("s3", **client_kwargs)
            logger.info(
                f"S3 client initialized for bucket: {self._config.bucket_name}",
                extra={"event": "storage_client_initialized", "endpoint": self._config.endpoint}
            )
            return self._client

    def is_configured(self) -> bool:
        return bool(self._config.region and self._config.bucket_name)

    def _validate_config(self) -> None:
        """Raise ConfigurationError if region or bucket is missing."""
        if not self._config.region:
            raise ConfigurationError("Storage region is not configured")
        if not self._config.bucket_name:
            raise ConfigurationError("Storage bucket name is not configured")

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def upload_file(self, params: UploadFileParams) -> UploadFileResult:
        started = time.perf_counter()
        key: Optional[str] = None
        try:
            self._validate_config()
            s3 = await asyncio.to_thread(self._get_client)

            key = generate_object_key(params.filename, params.folder)
            body = await self._read_payload(params.file)

            await asyncio.to_thread(
                s3.put_object,
                Bucket=self._config.bucket_name,
                Key=key,
                Body=body,
                ContentType=params.content_type,
            )

            url = await self._resolve_url(key)
        except ConfigurationError as e:
            self._record_failure("upload", e, key, started)
            raise
        except Exception as e:
            message = str(e) or "Unknown error occurred during file upload"
            self._record_failure("upload", message, key, started, include_traceback=True)
            raise UploadError(message) from e

        storage_upload_bytes_total.labels(provider=self.get_provider_name()).inc(len(body))
        self._record_success("upload", key, started, size_bytes=len(body))
        return UploadFileResult(url=url, key=key)

    async def delete_file(self, key: str) -> None:
        started = time.perf_counter()
        try:
            self._validate_config()
            s3 = await asyncio.to_thread(self._get_client)

            try:
                await asyncio.to_thread(
                    s3.delete_object,
                    Bucket=self._config.bucket_name,
                    Key=key,
                )
            except ClientError as e:
                if e.response.get("Error", {}).get("Code") not in _MISSING_OBJECT_CODES:
                    raise
                logger.debug(f"Object {key} not found in storage (already deleted)")
        except ConfigurationError as e:
            self._record_failure("delete", e, key, started)
            raise
        except Exception as e:
            message = str(e) or "Unknown error occurred during file deletion"
            self._record_failure("delete", message, key, started, include_traceback=True)
            raise StorageError(message) from e

        self._record_success("delete", key, started)

    async def get_presigned_upload_url(
        self,
        params: PresignedUploadUrlParams
    ) -> UploadFileResult:
        started = time.perf_counter()
        key: Optional[str] = None
        try:
            self._validate_config()
            s3 = await asyncio.to_thread(self._get_client)

            key = generate_object_key(params.filename, params.folder)

            # Content-Type is part of the signature, the PUT must send the same one
            url = await asyncio.to_thread(
                s3.generate_presigned_url,
                ClientMethod="put_object",
                Params={
                    "Bucket": self._config.bucket_name,
                    "Key": key,
                    "ContentType": params.content_type,
                },
                ExpiresIn=params.expires_in,
            )
        except ConfigurationError as e:
            self._record_failure("presign", e, key, started)
            raise
        except Exception as e:
            message = str(e) or "Unknown error occurred while generating presigned URL"
            self._record_failure("presign", message, key, started, include_traceback=True)
            raise StorageError(message) from e

        self._record_success("presign", key, started, expires_in=params.expires_in)
        return UploadFileResult(url=url, key=key)

    async def get_file_url(self, key: str) -> UploadFileResult:
        started = time.perf_counter()
        try:
            self._validate_config()
            url = await self._resolve_url(key)
        except ConfigurationError as e:
            self._record_failure("file_url", e, key, started)
            raise
        except Exception as e:
            message = str(e) or "Unknown error occurred while resolving file URL"
            self._record_failure("file_url", message, key, started, include_traceback=True)
            raise StorageError(message) from e

        self._record_success("file_url", key, started)
        return UploadFileResult(url=url, key=key)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _resolve_url(self, key: str) -> str:
        """
        Build the access URL for a key.

        Uses the public base URL when configured (custom domain), otherwise
        signs a GET URL valid for 7 days. The bucket itself stays private.
        """
        if self._config.public_url:
            return f"{self._config.public_url.rstrip('/')}/{key}"

        s3 = await asyncio.to_thread(self._get_client)
        return await asyncio.to_thread(
            s3.generate_presigned_url,
            ClientMethod="get_object",
            Params={
                "Bucket": self._config.bucket_name,
                "Key": key,
            },
            ExpiresIn=SIGNED_READ_URL_EXPIRATION,
        )

    @staticmethod
    async def _read_payload(file: FilePayload) -> bytes:
        """Normalize raw buffers and file-like objects to bytes (read fully)."""
        if isinstance(file, (bytes, bytearray, memoryview)):
            return bytes(file)

        read = getattr(file, "read", None)
        if read is None:
            raise TypeError(f"Unsupported file payload type: {type(file).__name__}")

        data = read()
        if inspect.isawaitable(data):
            data = await data
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError("File payload must read as bytes")
        return bytes(data)

    def _record_success(self, operation: str, key: Optional[str], started: float, **fields) -> None:
        duration = time.perf_counter() - started
        provider = self.get_provider_name()
        storage_operations_total.labels(provider=provider, operation=operation, status="success").inc()
        storage_operation_duration_seconds.labels(provider=provider, operation=operation).observe(duration)
        log_storage_operation(
            logger,
            provider=provider,
            operation=operation,
            key=key,
            duration_ms=duration * 1000,
            **fields
        )

    def _record_failure(
        self,
        operation: str,
        error,
        key: Optional[str],
        started: float,
        include_traceback: bool = False
    ) -> None:
        duration = time.perf_counter() - started
        provider = self.get_provider_name()
        storage_operations_total.labels(provider=provider, operation=operation, status="error").inc()
        log_storage_failure(
            logger,
            provider=provider,
            operation=operation,
            error=str(error),
            key=key,
            duration_ms=duration * 1000,
            include_traceback=include_traceback,
        )
