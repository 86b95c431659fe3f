"""Configuration management: TOML loading, config models, service settings.

Usage:
    >>> from collection_store.config import load_store_config, StoreConfig
"""

from collection_store.config.loader import load_store_config
from collection_store.config.models import (
    LocalCacheConfig,
    ProbeConfig,
    RemoteConfig,
    StoreConfig,
)
from collection_store.config.settings import ServiceSettings, get_service_settings

__all__ = [
    "load_store_config",
    "StoreConfig",
    "RemoteConfig",
    "LocalCacheConfig",
    "ProbeConfig",
    "ServiceSettings",
    "get_service_settings",
]
