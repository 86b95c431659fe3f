"""Backup and restore of the full collection set.

Usage:
    from collection_store.backup import write_backup, restore_backup, validate_backup
"""

from collection_store.backup.backup_restore import (
    backup_filename,
    export_collections,
    parse_backup,
    read_backup,
    restore_backup,
    restore_collections,
    save_artifact,
    serialize_backup,
    validate_backup,
    write_backup,
)
from collection_store.backup.models import (
    BACKUP_FORMAT_VERSION,
    BackupArtifact,
    CollectionRestoreResult,
    RestoreReport,
)

__all__ = [
    "BACKUP_FORMAT_VERSION",
    "BackupArtifact",
    "CollectionRestoreResult",
    "RestoreReport",
    "backup_filename",
    "export_collections",
    "parse_backup",
    "read_backup",
    "restore_backup",
    "restore_collections",
    "save_artifact",
    "serialize_backup",
    "validate_backup",
    "write_backup",
]
