"""
Configuration and settings for the relay service.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings, read once at process start."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=3000, validation_alias="PORT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    storage_backend: Literal["cloudinary", "s3", "memory"] = Field(
        default="cloudinary", validation_alias="STORAGE_BACKEND"
    )

    # Cloudinary account
    cloud_name: str = Field(default="djln3mjwd", validation_alias="CLOUD_NAME")
    cloud_key: Optional[str] = Field(default=None, validation_alias="CLOUD_KEY")
    cloud_secret: Optional[str] = Field(default=None, validation_alias="CLOUD_SECRET")

    # S3-compatible storage
    s3_bucket: Optional[str] = Field(default=None, validation_alias="S3_BUCKET")
    s3_region: Optional[str] = Field(default=None, validation_alias="S3_REGION")
    s3_endpoint: Optional[str] = Field(default=None, validation_alias="S3_ENDPOINT")
    aws_access_key_id: Optional[str] = Field(
        default=None, validation_alias="AWS_ACCESS_KEY_ID"
    )
    aws_secret_access_key: Optional[str] = Field(
        default=None, validation_alias="AWS_SECRET_ACCESS_KEY"
    )
    s3_url_expires: int = Field(default=3600, validation_alias="S3_URL_EXPIRES")

    # Folder layout on the provider
    upload_root: str = Field(
        default="uploads_pcd_eventos", validation_alias="UPLOAD_ROOT"
    )
    default_person: str = Field(default="sem-nome", validation_alias="DEFAULT_PERSON")
    backup_list_limit: int = Field(
        default=50, ge=1, le=500, validation_alias="BACKUP_LIST_LIMIT"
    )

    # HTTP
    max_body_bytes: int = Field(
        default=50 * 1024 * 1024, validation_alias="MAX_BODY_BYTES"
    )
    cors_origins: list[str] = Field(default=["*"], validation_alias="CORS_ORIGINS")

    @property
    def backups_folder(self) -> str:
        return f"{self.upload_root}/backups"

    def cloudinary_credentials(self) -> "CloudinaryCredentials":
        return CloudinaryCredentials(
            cloud_name=self.cloud_name,
            api_key=self.cloud_key or "",
            api_secret=self.cloud_secret or "",
        )


@dataclass(frozen=True)
class CloudinaryCredentials:
    """Account credentials handed to the Cloudinary client on every call."""

    cloud_name: str
    api_key: str
    api_secret: str

    @property
    def complete(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def as_options(self) -> dict:
        return {
            "cloud_name": self.cloud_name,
            "api_key": self.api_key,
            "api_secret": self.api_secret,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
