"""
FastAPI application entry point.
Sets up the API with lifespan events for storage provider initialization.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from mediastore.config import settings
from mediastore.api.router import api_router
from mediastore.middleware.metrics_middleware import MetricsMiddleware
from mediastore.storage.exceptions import StorageError
from mediastore.storage.factory import create_storage_provider
from mediastore.utils.logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup/shutdown events.
    - Startup: Configure logging and build the storage provider
    - Shutdown: Nothing to release (boto3 clients need no teardown)
    """
    # Configure structured JSON logging
    configure_logging('mediastore-api', settings.log_level)

    # Build the provider once; routes receive it via get_storage_provider
    app.state.storage_provider = create_storage_provider(settings.storage_config())

    yield


# Create FastAPI app
app = FastAPI(
    title="Media Store API",
    description="File upload and URL signing backed by S3-compatible storage",
    version="0.1.0",
    lifespan=lifespan
)

# CORS middleware (for browser uploads)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Metrics middleware (must be after CORS to track all requests)
app.add_middleware(MetricsMiddleware)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as 400 {"error": ...}."""
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message}
    )


@app.exception_handler(StorageError)
async def storage_exception_handler(request: Request, exc: StorageError):
    """Storage errors raised outside a route body (e.g. in dependencies)."""
    logger.error(f"Storage error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": str(exc)}
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Media Store API",
        "version": "0.1.0",
        "environment": settings.environment
    }


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
