"""
FastAPI dependencies for the storage layer.
Provides get_storage_provider, which returns the provider built at startup.
"""
from fastapi import Request

from mediastore.storage.base import StorageProvider
from mediastore.storage.exceptions import ConfigurationError


def get_storage_provider(request: Request) -> StorageProvider:
    """
    FastAPI dependency returning the application's storage provider.

    The provider is created once in the lifespan handler and stored on
    app.state. Tests override this dependency with a fake provider.

    Raises:
        ConfigurationError: If the application started without a provider
    """
    provider = getattr(request.app.state, "storage_provider", None)
    if provider is None:
        raise ConfigurationError("Storage provider is not initialized")
    return provider
