"""Configuration management for CrudBase.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded at application
startup and is immutable during runtime.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Kept in sync with StorageType in crudbase.infrastructure.storage.base
KNOWN_STORAGE_TYPES = ("file", "memory")


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CRUDBASE_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "CrudBase"
    app_version: str = "0.1.0"
    environment: str = "development"
    debug: bool = False
    api_prefix: str = "/api/storage"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1

    # Storage Settings
    storage_type: str | None = Field(
        default=None,
        description="Explicit storage backend ('file' or 'memory')",
    )
    dev_storage: str | None = Field(
        default=None,
        description="Storage backend override used only in development",
    )
    data_file: str = "./data/storage.json"
    backup_dir: str | None = None

    # CORS Settings
    cors_origins: list[str] = Field(default=["http://localhost:3000", "http://localhost:8000", "http://localhost:5173"])
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = Field(default=["*"])
    cors_allow_headers: list[str] = Field(default=["*"])

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"
    log_file: str | None = None

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("storage_type", "dev_storage", mode="before")
    @classmethod
    def validate_storage_type(cls, v: str | None) -> str | None:
        """Normalize storage type names and reject unknown backends."""
        if v is None:
            return None
        value = str(v).strip().lower()
        if not value:
            return None
        if value not in KNOWN_STORAGE_TYPES:
            raise ValueError(
                f"Unknown storage type '{v}'. "
                f"Expected one of: {', '.join(KNOWN_STORAGE_TYPES)}"
            )
        return value

    @field_validator("environment", mode="before")
    @classmethod
    def normalize_environment(cls, v: str | None) -> str:
        """Lower-case the environment name; empty means development."""
        value = (v or "").strip().lower()
        return value or "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment in ("production", "prod")

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment in ("development", "dev")

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment in ("test", "testing")

    @property
    def data_path(self) -> Path:
        """Resolved path of the JSON document used by the file backend."""
        return Path(self.data_file).expanduser()

    @property
    def backup_path(self) -> Path:
        """Directory receiving backup files."""
        if self.backup_dir:
            return Path(self.backup_dir).expanduser()
        return self.data_path.parent

    @property
    def resolved_storage_type(self) -> str:
        """Storage type selected by these settings when no override is given.

        ``storage_type`` wins; otherwise testing environments use memory,
        development uses ``dev_storage`` when set, and everything else uses
        the file backend.
        """
        if self.storage_type:
            return self.storage_type
        if self.is_testing:
            return "memory"
        if self.is_development and self.dev_storage:
            return self.dev_storage
        return "file"

    @model_validator(mode="after")
    def validate_file_workers(self) -> "Settings":
        """Validate that the file backend is not shared by multiple workers."""
        if self.workers > 1 and self.resolved_storage_type != "memory":
            raise ValueError(
                "The file storage backend does not support multiple worker processes. "
                f"Requested {self.workers} workers, but each worker would rewrite the same "
                "data file. Either use --workers 1 or CRUDBASE_STORAGE_TYPE=memory."
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    This function caches the settings instance to avoid reloading
    configuration on every call. Settings are loaded once at startup.

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()
