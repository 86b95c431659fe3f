"""TOML configuration loading for collection-store."""

import os
import tomllib
from pathlib import Path

from collection_store.config.models import StoreConfig

DEFAULT_CONFIG_PATH = Path("store.toml")

# Environment variables overriding values from the TOML file
ENV_REMOTE_URL = "COLLECTION_STORE_REMOTE_URL"
ENV_LOCAL_PATH = "COLLECTION_STORE_LOCAL_PATH"


def load_store_config(config_path: Path | None = None) -> StoreConfig:
    """Load store configuration from a TOML file.

    Environment overrides are applied after the file is read:
    ``COLLECTION_STORE_REMOTE_URL`` sets ``remote.base_url`` and
    ``COLLECTION_STORE_LOCAL_PATH`` sets ``local.path``.

    Args:
        config_path: Path to store.toml (default: ./store.toml)

    Returns:
        Validated StoreConfig

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config format is invalid
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        raise FileNotFoundError(
            f"Store config not found: {config_path}\n"
            f"Create store.toml with at least a [local] or [remote] section."
        )

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {config_path}: {e}") from e

    return config_from_mapping(data)


def config_from_mapping(data: dict) -> StoreConfig:
    """Build a StoreConfig from parsed TOML data plus environment overrides.

    Raises:
        ValueError: If the data does not match the config models.
    """
    data = {
        section: dict(values) if isinstance(values, dict) else values
        for section, values in data.items()
    }

    remote_url = os.environ.get(ENV_REMOTE_URL)
    if remote_url:
        data.setdefault("remote", {})["base_url"] = remote_url

    local_path = os.environ.get(ENV_LOCAL_PATH)
    if local_path:
        data.setdefault("local", {})["path"] = local_path

    # pydantic.ValidationError is a ValueError subclass
    return StoreConfig.model_validate(data)
