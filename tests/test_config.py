"""Tests for store.toml loading, environment overrides and service settings."""

from pathlib import Path

import pytest

from collection_store.config.loader import (
    ENV_LOCAL_PATH,
    ENV_REMOTE_URL,
    config_from_mapping,
    load_store_config,
)
from collection_store.config.models import StoreConfig
from collection_store.config.settings import ServiceSettings
from collection_store.factory import build_store, resolve_url


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "store.toml"
    path.write_text(content)
    return path


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv(ENV_REMOTE_URL, raising=False)
    monkeypatch.delenv(ENV_LOCAL_PATH, raising=False)


class TestLoadStoreConfig:
    """TOML parsing into StoreConfig."""

    def test_full_config(self, tmp_path: Path):
        path = _write(
            tmp_path,
            """
[remote]
base_url = "http://localhost:3001/api"
timeout = 2.5

[remote.headers]
Authorization = "Bearer abc"

[local]
path = "data/cache.db"

[probe]
recheck_interval = 60
""",
        )
        config = load_store_config(path)

        assert config.remote.base_url == "http://localhost:3001/api"
        assert config.remote.timeout == 2.5
        assert config.remote.headers == {"Authorization": "Bearer abc"}
        assert config.local.path == "data/cache.db"
        assert config.probe.recheck_interval == 60

    def test_defaults(self, tmp_path: Path):
        """An empty file yields a local-only store with default policy."""
        config = load_store_config(_write(tmp_path, ""))
        assert config.remote is None
        assert config.local.path == ".collection-store/cache.db"
        assert config.probe.recheck_interval == 30.0

    def test_negative_interval_disables_reprobe(self):
        config = config_from_mapping({"probe": {"recheck_interval": -1}})
        assert config.probe.recheck_interval is None

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError, match="Store config not found"):
            load_store_config(tmp_path / "missing.toml")

    def test_invalid_toml(self, tmp_path: Path):
        with pytest.raises(ValueError, match="Invalid TOML"):
            load_store_config(_write(tmp_path, "[remote\nbase_url ="))

    def test_invalid_values(self, tmp_path: Path):
        """Schema violations surface as ValueError."""
        with pytest.raises(ValueError):
            load_store_config(_write(tmp_path, '[remote]\nbase_url = "x"\ntimeout = 0\n'))


class TestEnvironmentOverrides:
    def test_remote_url_override(self, monkeypatch):
        monkeypatch.setenv(ENV_REMOTE_URL, "http://override/api")
        config = config_from_mapping({})
        assert config.remote.base_url == "http://override/api"

    def test_local_path_override(self, monkeypatch):
        monkeypatch.setenv(ENV_LOCAL_PATH, "/var/cache/store.db")
        config = config_from_mapping({"local": {"path": "ignored.db"}})
        assert config.local.path == "/var/cache/store.db"


class TestServiceSettings:
    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("COLLECTION_SERVICE_DATABASE_URL", "postgresql://db/shop")
        monkeypatch.setenv("COLLECTION_SERVICE_POOL_SIZE", "10")
        settings = ServiceSettings(_env_file=None)
        assert settings.database_url == "postgresql://db/shop"
        assert settings.pool_size == 10
        assert settings.api_prefix == "/api"


class TestFactory:
    def test_resolve_url_quotes_password(self):
        url = resolve_url("postgresql://app:[YOUR-PASSWORD]@db/shop", "p@ss/w")
        assert url == "postgresql://app:p%40ss%2Fw@db/shop"

    def test_resolve_url_without_password(self):
        url = "postgresql://app:[YOUR-PASSWORD]@db/shop"
        assert resolve_url(url, None) == url

    def test_build_store_local_only(self, tmp_path: Path):
        store = build_store(StoreConfig.model_validate({"local": {"path": str(tmp_path / "c.db")}}))
        assert store.remote is None
        assert store.local.path == tmp_path / "c.db"

    async def test_build_store_with_remote(self, tmp_path: Path):
        store = build_store(
            StoreConfig.model_validate(
                {
                    "remote": {"base_url": "http://shop.test/api/"},
                    "local": {"path": str(tmp_path / "c.db")},
                }
            )
        )
        assert store.remote.base_url == "http://shop.test/api"
        await store.close()
