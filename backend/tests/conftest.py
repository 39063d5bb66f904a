"""
Test configuration and fixtures.
Storage calls never leave the process: the API tests use a fake provider,
and S3Provider tests use a real boto3 client with botocore's Stubber
(pre-signed URLs are computed locally and need no network).
"""
import os

# Set test environment before any imports
os.environ["ENVIRONMENT"] = "test"
os.environ["STORAGE_REGION"] = "us-east-1"
os.environ["STORAGE_BUCKET_NAME"] = "test-bucket"
os.environ["STORAGE_ACCESS_KEY_ID"] = "test-access-key"
os.environ["STORAGE_SECRET_ACCESS_KEY"] = "test-secret-key"

import pytest
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from mediastore.storage.base import (
    PresignedUploadUrlParams,
    StorageConfig,
    StorageProvider,
    UploadFileParams,
    UploadFileResult,
)
from mediastore.storage.keys import generate_object_key
from mediastore.storage.s3_provider import S3Provider

STORAGE_ENDPOINT = "https://storage.example.com"
UUID_PATTERN = r"[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}"


class FakeStorageProvider(StorageProvider):
    """In-memory provider that records every call."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls: list[tuple[str, object]] = []
        self.objects: dict[str, bytes] = {}

    def get_provider_name(self) -> str:
        return "fake"

    def _maybe_fail(self):
        if self.error is not None:
            raise self.error

    async def upload_file(self, params: UploadFileParams) -> UploadFileResult:
        self.calls.append(("upload_file", params))
        self._maybe_fail()
        key = generate_object_key(params.filename, params.folder)
        self.objects[key] = bytes(params.file)
        return UploadFileResult(url=f"https://cdn.example.com/{key}", key=key)

    async def delete_file(self, key: str) -> None:
        self.calls.append(("delete_file", key))
        self._maybe_fail()
        self.objects.pop(key, None)

    async def get_presigned_upload_url(self, params: PresignedUploadUrlParams) -> UploadFileResult:
        self.calls.append(("get_presigned_upload_url", params))
        self._maybe_fail()
        key = generate_object_key(params.filename, params.folder)
        return UploadFileResult(url=f"{STORAGE_ENDPOINT}/test-bucket/{key}?signature=put", key=key)

    async def get_file_url(self, key: str) -> UploadFileResult:
        self.calls.append(("get_file_url", key))
        self._maybe_fail()
        return UploadFileResult(url=f"https://cdn.example.com/{key}", key=key)


def make_config(**overrides) -> StorageConfig:
    """Build a StorageConfig for tests, overriding any field."""
    values = dict(
        region="us-east-1",
        endpoint=STORAGE_ENDPOINT,
        access_key_id="test-access-key",
        secret_access_key="test-secret-key",
        bucket_name="test-bucket",
        public_url=None,
        force_path_style=True,
        provider="s3",
    )
    values.update(overrides)
    return StorageConfig(**values)


@pytest.fixture
def storage_config() -> StorageConfig:
    """Storage config without a public URL (results are signed URLs)."""
    return make_config()


@pytest.fixture
def s3_provider(storage_config: StorageConfig) -> S3Provider:
    """S3Provider backed by a real (offline) boto3 client."""
    return S3Provider(storage_config)


@pytest.fixture
def public_s3_provider() -> S3Provider:
    """S3Provider with a public base URL configured."""
    return S3Provider(make_config(public_url="https://cdn.example.com/"))


@pytest.fixture
def fake_provider() -> FakeStorageProvider:
    """Fake provider for API tests."""
    return FakeStorageProvider()


def get_test_app(provider: StorageProvider) -> FastAPI:
    """Return the FastAPI app with the storage provider overridden."""
    from mediastore.main import app
    from mediastore.api.dependencies import get_storage_provider

    app.dependency_overrides[get_storage_provider] = lambda: provider
    return app


@pytest.fixture
async def client(fake_provider: FakeStorageProvider) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    app = get_test_app(fake_provider)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Clean up overrides
    app.dependency_overrides.clear()
