"""
Client-side upload helper for the storage API.
"""
from mediastore.client.uploader import (
    StorageUploadClient,
    UploadClientError,
    UploadSource,
    UploadStrategy,
    choose_strategy,
)

__all__ = [
    "StorageUploadClient",
    "UploadClientError",
    "UploadSource",
    "UploadStrategy",
    "choose_strategy",
]
