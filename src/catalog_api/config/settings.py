# src/catalog_api/config/settings.py
from functools import lru_cache
from typing import List, Optional
from urllib.parse import quote_plus

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MAX_FILE_SIZE_BYTES = 40 * 1024 * 1024
DEFAULT_ALLOWED_MIME_TYPES = ["image/jpeg", "image/png", "image/jpg"]
DEFAULT_DATABASE_NAME = "catalog"


class Settings(BaseSettings):
    """
    Single source of truth for all application settings.

    Configuration precedence:
    1. Environment variables (highest priority, names are case-insensitive)
    2. .env file (if exists)
    3. Default values in this class (lowest priority)

    Usage:
        from catalog_api.config.settings import get_settings
        settings = get_settings()
        upload_dir = settings.upload_dir
    """

    # Application Settings
    app_name: str = Field(
        default="catalog-uploads",
        description="Application name"
    )

    host: str = Field(
        default="0.0.0.0",
        description="Interface uvicorn binds to"
    )

    port: int = Field(
        default=9000,
        description="Port uvicorn listens on"
    )

    # MongoDB Settings
    db_user: Optional[str] = Field(
        default=None,
        description="MongoDB user, also the default database name"
    )

    db_pass: Optional[str] = Field(
        default=None,
        description="MongoDB password"
    )

    db_host: str = Field(
        default="cluster0.ftnnv.mongodb.net",
        description="Host of the MongoDB cluster (SRV record)"
    )

    mongodb_uri: Optional[str] = Field(
        default=None,
        description="Full connection string; takes precedence over db_user/db_pass/db_host"
    )

    db_name: Optional[str] = Field(
        default=None,
        description="Database name (defaults to db_user)"
    )

    # Storage Configuration
    upload_dir: str = Field(
        default="uploads",
        description="Root directory for uploaded images, one subdirectory per category"
    )

    max_file_size_bytes: int = Field(
        default=DEFAULT_MAX_FILE_SIZE_BYTES,
        gt=0,
        description="Largest accepted upload, in bytes"
    )

    max_files_per_upload: int = Field(
        default=10,
        gt=0,
        description="Largest number of files accepted by /upload-multiple"
    )

    allowed_mime_types: List[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_MIME_TYPES),
        description="MIME types accepted for uploads"
    )

    # HTTP
    cors_allow_origins: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed by the CORS middleware"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize the log level and make sure `logging` knows it."""
        v = v.upper()
        valid_levels = ["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]
        if v not in valid_levels:
            raise ValueError(f"Invalid log_level: {v}. Must be one of {valid_levels}")
        return v

    @property
    def mongodb_connection_string(self) -> str:
        """Connection string for the MongoDB client."""
        if self.mongodb_uri:
            return self.mongodb_uri
        if not self.db_user or not self.db_pass:
            raise ValueError("MongoDB credentials required. Set DB_USER and DB_PASS, or MONGODB_URI")
        return f"mongodb+srv://{quote_plus(self.db_user)}:{quote_plus(self.db_pass)}@{self.db_host}/"

    @property
    def database_name(self) -> str:
        return self.db_name or self.db_user or DEFAULT_DATABASE_NAME

    def masked_dict(self) -> dict:
        """Settings as a dict with secrets hidden, for display."""
        values = self.model_dump()
        if values.get("db_pass"):
            values["db_pass"] = "****"
        if values.get("mongodb_uri"):
            values["mongodb_uri"] = "****"
        return values

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()
