"""
Tests for API endpoints.
Uses httpx AsyncClient for testing FastAPI routes with a fake storage provider.
"""
import re
from unittest.mock import patch

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from starlette.datastructures import UploadFile

from mediastore.storage.exceptions import ConfigurationError, StorageError, UploadError
from mediastore.storage.s3_provider import S3Provider
from tests.conftest import UUID_PATTERN, FakeStorageProvider, get_test_app, make_config

TEN_MB = 10 * 1024 * 1024


class TestRootEndpoint:
    """Tests for root and operational endpoints."""

    @pytest.mark.asyncio
    async def test_root_returns_info(self, client: AsyncClient):
        response = await client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Media Store API"
        assert "version" in data

    @pytest.mark.asyncio
    async def test_health_reports_provider(self, client: AsyncClient):
        response = await client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["provider"] == "fake"

    @pytest.mark.asyncio
    async def test_health_uses_injected_provider_config(self):
        app = get_test_app(S3Provider(make_config(bucket_name="")))
        try:
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
                response = await ac.get("/api/health")
        finally:
            app.dependency_overrides.clear()

        assert response.json() == {
            "status": "degraded",
            "provider": "S3",
            "storage": "missing region or bucket"
        }

    @pytest.mark.asyncio
    async def test_metrics_exposed(self, client: AsyncClient):
        await client.get("/")
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text


class TestUploadEndpoint:
    """Tests for POST /api/storage/upload."""

    @pytest.mark.asyncio
    async def test_upload_success(self, client: AsyncClient, fake_provider: FakeStorageProvider):
        response = await client.post(
            "/api/storage/upload",
            files={"file": ("photo.png", b"\x89PNG" * 512, "image/png")},
            data={"folder": "avatars"}
        )

        assert response.status_code == 200
        data = response.json()
        assert re.fullmatch(rf"avatars/{UUID_PATTERN}\.png", data["key"])
        assert data["url"].endswith(data["key"])

        name, params = fake_provider.calls[0]
        assert name == "upload_file"
        assert params.filename == "photo.png"
        assert params.content_type == "image/png"
        assert params.file == b"\x89PNG" * 512

    @pytest.mark.asyncio
    async def test_empty_folder_means_none(self, client: AsyncClient, fake_provider: FakeStorageProvider):
        response = await client.post(
            "/api/storage/upload",
            files={"file": ("photo.jpg", b"jpeg", "image/jpeg")},
            data={"folder": ""}
        )

        assert response.status_code == 200
        assert fake_provider.calls[0][1].folder is None
        assert "/" not in response.json()["key"]

    @pytest.mark.asyncio
    async def test_missing_file(self, client: AsyncClient, fake_provider: FakeStorageProvider):
        response = await client.post("/api/storage/upload", data={"folder": "avatars"})

        assert response.status_code == 400
        assert response.json() == {"error": "No file provided"}
        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_unsupported_type(self, client: AsyncClient, fake_provider: FakeStorageProvider):
        response = await client.post(
            "/api/storage/upload",
            files={"file": ("report.pdf", b"%PDF-1.7", "application/pdf")}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "File type not supported"}
        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_gif_not_accepted_for_proxy_upload(self, client: AsyncClient):
        response = await client.post(
            "/api/storage/upload",
            files={"file": ("anim.gif", b"GIF89a", "image/gif")}
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_file_too_large(self, client: AsyncClient, fake_provider: FakeStorageProvider):
        response = await client.post(
            "/api/storage/upload",
            files={"file": ("big.png", b"\0" * (TEN_MB + 1), "image/png")}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "File size exceeds the 10MB limit"}
        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_oversized_file_is_never_buffered_whole(self, client: AsyncClient, fake_provider: FakeStorageProvider):
        bytes_read = []
        original_read = UploadFile.read

        async def recording_read(self, size: int = -1) -> bytes:
            data = await original_read(self, size)
            bytes_read.append(len(data))
            return data

        with patch.object(UploadFile, "read", recording_read):
            response = await client.post(
                "/api/storage/upload",
                files={"file": ("big.png", b"\0" * (3 * TEN_MB), "image/png")}
            )

        assert response.status_code == 400
        assert response.json() == {"error": "File size exceeds the 10MB limit"}
        assert sum(bytes_read) <= TEN_MB + 1
        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_rejected_type_is_not_read(self, client: AsyncClient):
        bytes_read = []
        original_read = UploadFile.read

        async def recording_read(self, size: int = -1) -> bytes:
            data = await original_read(self, size)
            bytes_read.append(len(data))
            return data

        with patch.object(UploadFile, "read", recording_read):
            response = await client.post(
                "/api/storage/upload",
                files={"file": ("report.pdf", b"%PDF" * 1024, "application/pdf")}
            )

        assert response.status_code == 400
        assert response.json() == {"error": "File type not supported"}
        assert bytes_read == []

    @pytest.mark.asyncio
    async def test_storage_error_message_is_returned(self, client: AsyncClient, fake_provider: FakeStorageProvider):
        fake_provider.error = UploadError("Access Denied")

        response = await client.post(
            "/api/storage/upload",
            files={"file": ("photo.png", b"png", "image/png")}
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Access Denied"}

    @pytest.mark.asyncio
    async def test_unexpected_error_is_masked(self, client: AsyncClient, fake_provider: FakeStorageProvider):
        fake_provider.error = RuntimeError("secret internals")

        response = await client.post(
            "/api/storage/upload",
            files={"file": ("photo.png", b"png", "image/png")}
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Something went wrong while uploading the file"}


class TestPresignedUrlEndpoint:
    """Tests for POST /api/storage/presigned-url."""

    @pytest.mark.asyncio
    async def test_presigned_url_success(self, client: AsyncClient, fake_provider: FakeStorageProvider):
        response = await client.post(
            "/api/storage/presigned-url",
            json={"filename": "video-thumb.webp", "contentType": "image/webp", "folder": "thumbs"}
        )

        assert response.status_code == 200
        data = response.json()
        assert re.fullmatch(rf"thumbs/{UUID_PATTERN}\.webp", data["key"])

        name, params = fake_provider.calls[0]
        assert name == "get_presigned_upload_url"
        # The original filename goes to the provider, which generates the key
        assert params.filename == "video-thumb.webp"
        assert params.expires_in == 3600

    @pytest.mark.asyncio
    async def test_gif_accepted(self, client: AsyncClient):
        response = await client.post(
            "/api/storage/presigned-url",
            json={"filename": "anim.gif", "contentType": "image/gif"}
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_missing_filename(self, client: AsyncClient, fake_provider: FakeStorageProvider):
        response = await client.post(
            "/api/storage/presigned-url",
            json={"contentType": "image/png"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Filename is required"}
        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_missing_content_type(self, client: AsyncClient):
        response = await client.post(
            "/api/storage/presigned-url",
            json={"filename": "photo.png"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Content type is required"}

    @pytest.mark.asyncio
    async def test_unsupported_type(self, client: AsyncClient, fake_provider: FakeStorageProvider):
        response = await client.post(
            "/api/storage/presigned-url",
            json={"filename": "report.pdf", "contentType": "application/pdf"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "File type not supported"}
        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_malformed_body(self, client: AsyncClient, fake_provider: FakeStorageProvider):
        response = await client.post(
            "/api/storage/presigned-url",
            content=b"not json",
            headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert "error" in response.json()
        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_configuration_error(self, client: AsyncClient, fake_provider: FakeStorageProvider):
        fake_provider.error = ConfigurationError("Storage bucket name is not configured")

        response = await client.post(
            "/api/storage/presigned-url",
            json={"filename": "photo.png", "contentType": "image/png"}
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Storage bucket name is not configured"}


class TestFileUrlEndpoint:
    """Tests for POST /api/storage/file-url."""

    @pytest.mark.asyncio
    async def test_file_url_success(self, client: AsyncClient, fake_provider: FakeStorageProvider):
        response = await client.post("/api/storage/file-url", json={"key": "avatars/a.png"})

        assert response.status_code == 200
        assert response.json() == {
            "url": "https://cdn.example.com/avatars/a.png",
            "key": "avatars/a.png"
        }
        assert fake_provider.calls == [("get_file_url", "avatars/a.png")]

    @pytest.mark.asyncio
    async def test_missing_key(self, client: AsyncClient):
        response = await client.post("/api/storage/file-url", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "File key is required"}

    @pytest.mark.asyncio
    async def test_storage_error(self, client: AsyncClient, fake_provider: FakeStorageProvider):
        fake_provider.error = StorageError("signing failed")

        response = await client.post("/api/storage/file-url", json={"key": "a.png"})

        assert response.status_code == 500
        assert response.json() == {"error": "signing failed"}


class TestProviderWiring:
    """Tests for how the provider reaches the routes."""

    @pytest.mark.asyncio
    async def test_missing_provider_is_reported(self):
        from mediastore.main import app

        app.dependency_overrides.clear()
        had_provider = hasattr(app.state, "storage_provider")
        saved = getattr(app.state, "storage_provider", None)
        app.state.storage_provider = None
        try:
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
                response = await ac.post("/api/storage/file-url", json={"key": "a.png"})
        finally:
            if had_provider:
                app.state.storage_provider = saved
            else:
                del app.state.storage_provider

        assert response.status_code == 500
        assert response.json() == {"error": "Storage provider is not initialized"}

    @pytest.mark.asyncio
    async def test_lifespan_builds_provider_once(self):
        from mediastore.main import lifespan

        test_app = FastAPI()
        with patch("mediastore.main.configure_logging"):
            async with lifespan(test_app):
                provider = test_app.state.storage_provider

        assert isinstance(provider, S3Provider)
        assert provider.config.bucket_name == "test-bucket"
