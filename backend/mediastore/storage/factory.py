"""
Storage provider factory.
Selects and constructs the provider for the configured provider kind.

The provider is built once at application startup (see main.lifespan) and
handed to the routes through a FastAPI dependency; there is no lazily
created global instance.
"""
import logging
from enum import Enum

from mediastore.storage.base import StorageConfig, StorageProvider
from mediastore.storage.exceptions import ConfigurationError
from mediastore.storage.s3_provider import S3Provider

logger = logging.getLogger(__name__)


class StorageProviderKind(str, Enum):
    """Supported storage backends."""
    S3 = "s3"


# New backends are added here, one entry per kind
_PROVIDERS: dict[StorageProviderKind, type[StorageProvider]] = {
    StorageProviderKind.S3: S3Provider,
}


def create_storage_provider(config: StorageConfig) -> StorageProvider:
    """
    Construct the storage provider selected by config.provider.

    Provider selection is controlled by the STORAGE_PROVIDER environment variable:
    - "s3" → S3Provider (AWS S3, Cloudflare R2, MinIO, ...)

    Args:
        config: Storage configuration

    Returns:
        StorageProvider instance

    Raises:
        ConfigurationError: If the provider is not supported
    """
    try:
        kind = StorageProviderKind((config.provider or "").lower())
    except ValueError:
        logger.error(f"Unknown storage provider: {config.provider}")
        raise ConfigurationError(f"Unsupported storage provider: {config.provider}")

    provider = _PROVIDERS[kind](config)
    logger.info(f"Using {provider.get_provider_name()} storage provider")
    return provider
