"""Store and repository factory.

Builds a wired ``CollectionStore`` from a ``StoreConfig`` (client side)
and a ``CollectionRepository`` from ``ServiceSettings`` (service side).

Usage:
    from collection_store.factory import connect_store

    store = await connect_store(load_store_config())
    print(store.status.available)
"""

from pathlib import Path
from urllib.parse import quote

from collection_store.adapters.local import LocalCacheAdapter
from collection_store.adapters.remote import RemoteGatewayAdapter
from collection_store.config.loader import load_store_config
from collection_store.config.models import StoreConfig
from collection_store.config.settings import ServiceSettings
from collection_store.probe import BackendSelector
from collection_store.service.repository import CollectionRepository
from collection_store.store import CollectionStore

PASSWORD_PLACEHOLDER = "[YOUR-PASSWORD]"


def resolve_url(url: str, db_password: str | None = None) -> str:
    """Substitute the ``[YOUR-PASSWORD]`` placeholder in a database URL.

    The password is URL-quoted so special characters survive.

    Example:
        >>> resolve_url("postgresql://app:[YOUR-PASSWORD]@db/shop", "p@ss")
        'postgresql://app:p%40ss@db/shop'
    """
    if db_password and PASSWORD_PLACEHOLDER in url:
        url = url.replace(PASSWORD_PLACEHOLDER, quote(db_password, safe=""))
    return url


def create_repository(settings: ServiceSettings) -> CollectionRepository:
    """Create the service repository with a bounded connection pool."""
    return CollectionRepository(
        resolve_url(settings.database_url, settings.db_password),
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_timeout=settings.pool_timeout,
    )


def build_store(config: StoreConfig) -> CollectionStore:
    """Create a CollectionStore without touching any backend.

    A config without a ``[remote]`` section yields a local-only store.
    """
    local = LocalCacheAdapter(Path(config.local.path))
    remote = None
    if config.remote is not None:
        remote = RemoteGatewayAdapter(
            config.remote.base_url,
            timeout=config.remote.timeout,
            headers=config.remote.headers,
        )
    selector = BackendSelector(recheck_interval=config.probe.recheck_interval)
    return CollectionStore(local, remote=remote, selector=selector)


async def connect_store(
    config: StoreConfig | None = None,
    config_path: Path | None = None,
) -> CollectionStore:
    """Build a store, open its local cache and probe the remote.

    Args:
        config: Store configuration.  Loaded from *config_path* when None.
        config_path: Path to store.toml (default: ./store.toml).

    Raises:
        FileNotFoundError: If no config is given and the file is missing.
        LocalStorageError: If the local cache cannot be opened.
    """
    if config is None:
        config = load_store_config(config_path)
    store = build_store(config)
    await store.initialize()
    return store
