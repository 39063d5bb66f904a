"""
API router aggregator.
Includes all route modules.
"""
from fastapi import APIRouter
from mediastore.api import health, storage

api_router = APIRouter()

# Include route modules
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(storage.router, prefix="/storage", tags=["storage"])
