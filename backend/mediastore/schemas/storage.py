"""
Pydantic schemas for storage endpoints.

Request fields are optional at the schema level so the routes can answer
missing values with 400 and a readable message instead of a 422.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class PresignedUrlRequest(BaseModel):
    """Request schema for pre-signed upload URL generation."""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "filename": "video-thumb.webp",
                "contentType": "image/webp",
                "folder": "thumbnails"
            }
        }
    )

    filename: Optional[str] = Field(None, description="Original filename (for the extension)")
    content_type: Optional[str] = Field(None, alias="contentType", description="MIME type of the file")
    folder: Optional[str] = Field(None, description="Optional folder prefix for the object key")


class FileUrlRequest(BaseModel):
    """Request schema for resolving the access URL of an object."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {"key": "avatars/0b6f9a4e-7c1d-4a55-9d36-2f1f0f6a1c11.png"}
        }
    )

    key: Optional[str] = Field(None, description="Object key in the storage bucket")


class FileUrlResponse(BaseModel):
    """Response schema shared by all storage endpoints."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "url": "https://cdn.example.com/avatars/0b6f9a4e-7c1d-4a55-9d36-2f1f0f6a1c11.png",
                "key": "avatars/0b6f9a4e-7c1d-4a55-9d36-2f1f0f6a1c11.png"
            }
        }
    )

    url: str = Field(..., description="Public URL or time-limited signed URL")
    key: str = Field(..., description="Object key in the storage bucket")


class ErrorResponse(BaseModel):
    """Error body returned on 400/500."""
    error: str
