"""collection-store: dual-backend collection persistence with backup/restore.

Provides one async store over named collections that uses a remote
collection service when reachable and an embedded SQLite cache when not,
plus export/import of the whole dataset as one versioned JSON artifact.

Usage:
    from collection_store import CollectionStore, LocalCacheAdapter, RemoteGatewayAdapter
    from collection_store import connect_store, load_store_config
    from collection_store import write_backup, restore_backup
"""

__version__ = "0.1.0"

# Adapters
from collection_store.adapters.base import CollectionBackend
from collection_store.adapters.local import LocalCacheAdapter
from collection_store.adapters.remote import RemoteGatewayAdapter

# Registry
from collection_store.collections import ANALYTICS_EVENTS, COLLECTIONS, CollectionName

# Config
from collection_store.config.loader import load_store_config
from collection_store.config.models import StoreConfig

# Errors
from collection_store.errors import (
    BackupValidationError,
    CollectionStoreError,
    DocumentValidationError,
    LocalStorageError,
    PartialBatchError,
    RemoteUnavailableError,
)

# Store
from collection_store.factory import build_store, connect_store
from collection_store.payload import BinaryContent
from collection_store.probe import AvailabilityProbe, BackendSelector, BackendStatus
from collection_store.store import BulkWriteResult, CollectionStore

# Backup
from collection_store.backup.backup_restore import (
    export_collections,
    restore_backup,
    restore_collections,
    validate_backup,
    write_backup,
)
from collection_store.backup.models import BackupArtifact, RestoreReport

__all__ = [
    # Adapters
    "CollectionBackend",
    "LocalCacheAdapter",
    "RemoteGatewayAdapter",
    # Registry
    "COLLECTIONS",
    "ANALYTICS_EVENTS",
    "CollectionName",
    # Config
    "load_store_config",
    "StoreConfig",
    # Errors
    "CollectionStoreError",
    "RemoteUnavailableError",
    "LocalStorageError",
    "DocumentValidationError",
    "PartialBatchError",
    "BackupValidationError",
    # Store
    "CollectionStore",
    "BulkWriteResult",
    "BinaryContent",
    "AvailabilityProbe",
    "BackendSelector",
    "BackendStatus",
    "build_store",
    "connect_store",
    # Backup
    "BackupArtifact",
    "RestoreReport",
    "export_collections",
    "write_backup",
    "restore_collections",
    "restore_backup",
    "validate_backup",
]
