"""Shared fixtures: real SQLite-backed cache, repository, service and store."""

from pathlib import Path

import httpx
import pytest

from collection_store.adapters.local import LocalCacheAdapter
from collection_store.adapters.remote import RemoteGatewayAdapter
from collection_store.config.settings import ServiceSettings
from collection_store.probe import BackendSelector
from collection_store.service.app import create_app
from collection_store.service.repository import CollectionRepository
from collection_store.store import CollectionStore

BASE_URL = "http://testserver/api"


@pytest.fixture
async def local_cache(tmp_path: Path):
    cache = LocalCacheAdapter(tmp_path / "cache" / "local.db")
    await cache.open()
    yield cache
    await cache.close()


@pytest.fixture
async def repository(tmp_path: Path):
    repo = CollectionRepository(f"sqlite:///{tmp_path / 'service.db'}")
    await repo.init_schema()
    yield repo
    await repo.close()


@pytest.fixture
def service_app(repository: CollectionRepository):
    settings = ServiceSettings(database_url="sqlite://", api_prefix="/api")
    return create_app(repository=repository, settings=settings)


@pytest.fixture
async def gateway(service_app):
    gw = RemoteGatewayAdapter(BASE_URL, transport=httpx.ASGITransport(app=service_app))
    yield gw
    await gw.close()


@pytest.fixture
async def store(local_cache: LocalCacheAdapter, gateway: RemoteGatewayAdapter):
    """Store wired to the in-process service; probed once, no re-probing."""
    s = CollectionStore(
        local_cache,
        remote=gateway,
        selector=BackendSelector(recheck_interval=None),
    )
    await s.initialize()
    yield s
