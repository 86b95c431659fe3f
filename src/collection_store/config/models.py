"""Pydantic models for store and service configuration."""

from pydantic import BaseModel, Field, field_validator


# ============================================================================
# Client-side Configuration Models
# ============================================================================


class RemoteConfig(BaseModel):
    """Remote collection service connection from store.toml ``[remote]``."""

    base_url: str
    timeout: float = Field(default=5.0, gt=0)
    headers: dict[str, str] = Field(default_factory=dict)


class LocalCacheConfig(BaseModel):
    """Embedded cache location from store.toml ``[local]``."""

    path: str = ".collection-store/cache.db"


class ProbeConfig(BaseModel):
    """Availability re-check policy from store.toml ``[probe]``."""

    recheck_interval: float | None = 30.0  # None: probe once per process

    @field_validator("recheck_interval")
    @classmethod
    def _negative_disables(cls, value: float | None) -> float | None:
        if value is not None and value < 0:
            return None
        return value


class StoreConfig(BaseModel):
    """Complete configuration from store.toml."""

    remote: RemoteConfig | None = None  # None: local-only store
    local: LocalCacheConfig = Field(default_factory=LocalCacheConfig)
    probe: ProbeConfig = Field(default_factory=ProbeConfig)
