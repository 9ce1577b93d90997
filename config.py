"""
Runtime configuration for the Manga Catalog API.

Values come from environment variables (or a local .env file) and are
cached for the lifetime of the process.
"""
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = Field("mongodb://localhost:27017", description="MongoDB connection URI")
    database_name: str = Field("manga-reader-db", description="Database holding the catalog collections")
    mongo_timeout_ms: int = Field(5000, ge=1, description="Server selection timeout for MongoDB")

    admin_token: Optional[SecretStr] = Field(None, description="Operator token for management routes")

    cors_origins: List[str] = Field(default_factory=lambda: ["*"], description="Allowed CORS origins")
    api_host: str = Field("0.0.0.0", description="Bind address for uvicorn")
    port: int = Field(8000, ge=1, le=65535, description="Bind port for uvicorn")

    log_level: str = Field("INFO", description="DEBUG | INFO | WARNING | ERROR | CRITICAL")
    log_format: str = Field("console", description="console | json")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        fmt = v.lower()
        if fmt not in {"console", "json"}:
            raise ValueError(f"Invalid log format: {v}")
        return fmt


@lru_cache()
def get_settings() -> Settings:
    return Settings()
