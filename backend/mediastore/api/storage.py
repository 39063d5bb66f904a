"""
Storage endpoints for file uploads.

Implements both upload paths used by the upload client:
1. POST /storage/upload - Server receives the file and writes it (small files)
2. POST /storage/presigned-url - Get a signed PUT URL for direct upload (large files)
3. POST /storage/file-url - Resolve the access URL for an uploaded key

Errors are returned as {"error": "..."}:
- 400 for validation failures (nothing is sent to storage)
- 500 with the storage error message for StorageError
- 500 with a generic message for anything else
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import JSONResponse

from mediastore.api.dependencies import get_storage_provider
from mediastore.schemas.storage import (
    ErrorResponse,
    FileUrlRequest,
    FileUrlResponse,
    PresignedUrlRequest,
)
from mediastore.storage.base import PresignedUploadUrlParams, StorageProvider, UploadFileParams
from mediastore.storage.exceptions import StorageError

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10MB

# Allowed content types per upload path
UPLOAD_ALLOWED_TYPES = ['image/jpeg', 'image/png', 'image/webp']
PRESIGNED_ALLOWED_TYPES = ['image/jpeg', 'image/png', 'image/gif', 'image/webp']

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Validation failure"},
    500: {"model": ErrorResponse, "description": "Storage failure"},
}


def error_response(status_code: int, message: str) -> JSONResponse:
    """Build the {"error": message} body used by every storage endpoint."""
    return JSONResponse(status_code=status_code, content={"error": message})


def _failure_response(error: Exception, fallback: str) -> JSONResponse:
    """Expose StorageError messages; mask everything else behind a fallback."""
    if isinstance(error, StorageError):
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(error))
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, fallback)


def _too_large_response() -> JSONResponse:
    return error_response(status.HTTP_400_BAD_REQUEST, "File size exceeds the 10MB limit")


# ============================================================================
# Endpoints
# ============================================================================

@router.post("/upload", response_model=FileUrlResponse, responses=ERROR_RESPONSES)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    folder: Optional[str] = Form(None),
    provider: StorageProvider = Depends(get_storage_provider)
):
    """
    Upload a file through the API.

    Accepts multipart form data with `file` and an optional `folder`.
    Only images up to 10MB are accepted; larger files should use
    /presigned-url instead.
    """
    try:
        if file is None:
            return error_response(status.HTTP_400_BAD_REQUEST, "No file provided")

        if file.size is not None and file.size > MAX_UPLOAD_SIZE:
            return _too_large_response()

        if file.content_type not in UPLOAD_ALLOWED_TYPES:
            return error_response(status.HTTP_400_BAD_REQUEST, "File type not supported")

        # Never hold more than one byte past the limit in memory
        data = await file.read(MAX_UPLOAD_SIZE + 1)
        if len(data) > MAX_UPLOAD_SIZE:
            return _too_large_response()

        result = await provider.upload_file(UploadFileParams(
            file=data,
            filename=file.filename or "",
            content_type=file.content_type,
            folder=folder or None
        ))

        logger.info(f"Uploaded file: key={result.key}, size={len(data)}")
        return FileUrlResponse(url=result.url, key=result.key)

    except Exception as e:
        logger.error(f"Error uploading file: {e}")
        return _failure_response(e, "Something went wrong while uploading the file")


@router.post("/presigned-url", response_model=FileUrlResponse, responses=ERROR_RESPONSES)
async def create_presigned_url(
    request: PresignedUrlRequest,
    provider: StorageProvider = Depends(get_storage_provider)
):
    """
    Generate a pre-signed URL for direct file upload to storage.

    Client then:
    1. PUTs the raw file to `url` with the same Content-Type
    2. Calls /file-url with `key` to get the access URL
    """
    try:
        if not request.filename:
            return error_response(status.HTTP_400_BAD_REQUEST, "Filename is required")

        if not request.content_type:
            return error_response(status.HTTP_400_BAD_REQUEST, "Content type is required")

        if request.content_type not in PRESIGNED_ALLOWED_TYPES:
            return error_response(status.HTTP_400_BAD_REQUEST, "File type not supported")

        # The provider generates the unique key from the filename's extension
        result = await provider.get_presigned_upload_url(PresignedUploadUrlParams(
            filename=request.filename,
            content_type=request.content_type,
            folder=request.folder or None
        ))

        return FileUrlResponse(url=result.url, key=result.key)

    except Exception as e:
        logger.error(f"Error generating pre-signed URL: {e}")
        return _failure_response(e, "Something went wrong while generating pre-signed URL")


@router.post("/file-url", response_model=FileUrlResponse, responses=ERROR_RESPONSES)
async def get_file_url(
    request: FileUrlRequest,
    provider: StorageProvider = Depends(get_storage_provider)
):
    """
    Resolve the access URL for an uploaded object.

    Returns the public URL when a public base is configured, otherwise a
    signed GET URL valid for 7 days.
    """
    try:
        if not request.key:
            return error_response(status.HTTP_400_BAD_REQUEST, "File key is required")

        result = await provider.get_file_url(request.key)
        return FileUrlResponse(url=result.url, key=result.key)

    except Exception as e:
        logger.error(f"Error getting file URL: {e}")
        return _failure_response(e, "Something went wrong while getting the file URL")
