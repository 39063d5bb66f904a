"""
Health check endpoint.
Reports the active storage provider and whether it has the settings it needs.
"""
from fastapi import APIRouter, Depends

from mediastore.api.dependencies import get_storage_provider
from mediastore.storage.base import StorageProvider

router = APIRouter()


@router.get("")
async def health_check(provider: StorageProvider = Depends(get_storage_provider)):
    """
    Health check endpoint.
    Does not contact the object store; only checks the provider's configuration.
    """
    configured = provider.is_configured()
    return {
        "status": "healthy" if configured else "degraded",
        "provider": provider.get_provider_name(),
        "storage": "configured" if configured else "missing region or bucket"
    }
