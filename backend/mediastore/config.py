"""
Application configuration using Pydantic Settings.
All environment variables are loaded here with sensible defaults.
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

from mediastore.storage.base import StorageConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    environment: str = "dev"
    log_level: str = "INFO"

    # S3-compatible object storage (AWS S3, Cloudflare R2, MinIO, ...)
    # Nothing is validated here; the provider checks region/bucket before each call
    storage_region: str = ""  # e.g., us-east-1, or "auto" for R2
    storage_endpoint: Optional[str] = None  # e.g., https://<account_id>.r2.cloudflarestorage.com
    storage_access_key_id: str = ""
    storage_secret_access_key: str = ""
    storage_bucket_name: str = ""
    storage_public_url: Optional[str] = None  # Custom domain serving the bucket publicly
    storage_force_path_style: bool = True  # Only the literal "false" turns it off
    storage_provider: str = "s3"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("storage_force_path_style", mode="before")
    @classmethod
    def _parse_force_path_style(cls, value):
        if isinstance(value, str):
            return value.strip().lower() != "false"
        return value

    @field_validator("storage_endpoint", "storage_public_url", mode="before")
    @classmethod
    def _empty_as_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def storage_config(self) -> StorageConfig:
        """Assemble the read-only storage configuration for the provider."""
        return StorageConfig(
            region=self.storage_region,
            endpoint=self.storage_endpoint,
            access_key_id=self.storage_access_key_id,
            secret_access_key=self.storage_secret_access_key,
            bucket_name=self.storage_bucket_name,
            public_url=self.storage_public_url,
            force_path_style=self.storage_force_path_style,
            provider=self.storage_provider,
        )


# Global settings instance
settings = Settings()
