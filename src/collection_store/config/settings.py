"""Environment-backed settings for the collection service."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServiceSettings(BaseSettings):
    """Settings read from ``COLLECTION_SERVICE_*`` env vars or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="COLLECTION_SERVICE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_prefix: str = "/api"
    database_url: str = "sqlite:///collection-service.db"
    db_password: str | None = None
    pool_size: int = Field(default=5, ge=1)
    max_overflow: int = Field(default=0, ge=0)
    pool_timeout: float = Field(default=30.0, gt=0)


@lru_cache(maxsize=1)
def get_service_settings() -> ServiceSettings:
    """Return cached settings instance."""
    return ServiceSettings()
