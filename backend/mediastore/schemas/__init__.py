"""
Pydantic schemas for API request/response validation.
"""
from mediastore.schemas.storage import (
    PresignedUrlRequest,
    FileUrlRequest,
    FileUrlResponse,
    ErrorResponse,
)

__all__ = [
    "PresignedUrlRequest",
    "FileUrlRequest",
    "FileUrlResponse",
    "ErrorResponse",
]
