"""Backup and restore of every collection through a CollectionStore.

Export reads each registry collection with ``get_all`` and assembles one
versioned artifact.  Import validates the artifact before touching any
data, then replaces collections one at a time, in registry order, with
``clear`` followed by ``save_many``.

Import is not globally atomic.  A failure stops the import: collections
before it are already replaced, the failing one may be cleared or
partially written, and the rest are left untouched.  The returned
``RestoreReport`` says which is which.

Usage:
    from collection_store.backup.backup_restore import (
        restore_backup,
        validate_backup,
        write_backup,
    )

    path = await write_backup(store)
    report = await restore_backup(store, path)
    if not report.complete:
        print(report.format_report())
"""

import json
import logging
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

from collection_store.collections import COLLECTIONS, validate_document
from collection_store.backup.models import (
    BACKUP_FORMAT_VERSION,
    BackupArtifact,
    CollectionRestoreResult,
    RestoreReport,
)
from collection_store.errors import (
    BackupValidationError,
    CollectionStoreError,
    DocumentValidationError,
    PartialBatchError,
)
from collection_store.store import CollectionStore

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Export
# ----------------------------------------------------------------------


async def export_collections(store: CollectionStore) -> BackupArtifact:
    """Read every registry collection into one artifact.

    Collections are read in registry order; the timestamp is the current
    UTC time.
    """
    data: dict[str, list[Any]] = {}
    for name in COLLECTIONS:
        data[name] = await store.get_all(name)

    return BackupArtifact(
        version=BACKUP_FORMAT_VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
        data=data,
    )


def serialize_backup(artifact: BackupArtifact) -> str:
    """Encode an artifact as indented JSON (registry key order)."""
    return json.dumps(artifact.model_dump(), indent=2, ensure_ascii=False, default=str)


def backup_filename(day: date | None = None) -> str:
    """Return the dated file name for a backup, e.g. ``backup-2026-01-15.json``."""
    day = day or datetime.now(timezone.utc).date()
    return f"backup-{day.isoformat()}.json"


def save_artifact(artifact: BackupArtifact, output_path: str | None = None) -> str:
    """Write an exported artifact to disk.

    Args:
        artifact: Artifact from ``export_collections``.
        output_path: Path to save the backup.  When ``None``, writes
            ``./backups/backup-YYYY-MM-DD.json``.

    Returns:
        Path of the written file.
    """
    if output_path is None:
        backups_dir = Path.cwd() / "backups"
        output_path = str(backups_dir / backup_filename())

    output_path_obj = Path(output_path)
    output_path_obj.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(serialize_backup(artifact))

    total = sum(artifact.counts.values())
    logger.info(f"Backup written to {output_path} ({total} documents)")
    return output_path


async def write_backup(store: CollectionStore, output_path: str | None = None) -> str:
    """Export every collection to a JSON backup file.

    Returns:
        Path of the written file.
    """
    return save_artifact(await export_collections(store), output_path)


# ----------------------------------------------------------------------
# Validation
# ----------------------------------------------------------------------


def parse_backup(content: str | bytes) -> Any:
    """Decode backup JSON.

    Raises:
        BackupValidationError: If *content* is not valid JSON.
    """
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise BackupValidationError(f"Backup is not valid JSON: {e}", [str(e)]) from e


def read_backup(backup_path: str | Path) -> Any:
    """Read and decode a backup file.

    Raises:
        FileNotFoundError: If the file does not exist.
        BackupValidationError: If it is not a ``.json`` file or not JSON.
    """
    path = Path(backup_path)
    if not path.exists():
        raise FileNotFoundError(f"Backup file not found: {path}")
    if path.suffix.lower() != ".json":
        raise BackupValidationError(
            f"Backup file must be a .json file: {path.name}", ["not a .json file"]
        )
    return parse_backup(path.read_bytes())


def validate_backup(raw: Any) -> dict:
    """Check a decoded artifact before anything is mutated.

    Errors (block the import):

    - root is not an object, or ``data`` is missing / not an object
    - no key of ``data`` is a known collection
    - unsupported ``version``
    - a document without ``id`` (keyed) or ``type`` (events)

    Warnings (import proceeds):

    - missing ``version``
    - unknown collection keys (ignored)
    - collection values that are not lists (skipped)

    Returns:
        Dict with ``valid`` (bool), ``errors`` (list[str]),
        and ``warnings`` (list[str]).
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not isinstance(raw, dict):
        errors.append("Invalid backup format: root must be an object")
        return {"valid": False, "errors": errors, "warnings": warnings}

    data = raw.get("data")
    if not isinstance(data, dict):
        errors.append("Invalid backup structure: 'data' object missing")
        return {"valid": False, "errors": errors, "warnings": warnings}

    version = raw.get("version")
    if version is None:
        warnings.append("Missing 'version' field")
    elif version != BACKUP_FORMAT_VERSION:
        errors.append(
            f"Unsupported backup version '{version}' (expected {BACKUP_FORMAT_VERSION})"
        )

    known = [name for name in data if name in COLLECTIONS]
    for name in data:
        if name not in COLLECTIONS:
            warnings.append(f"Unknown collection '{name}' will be ignored")

    if not known:
        errors.append("Backup contains no recognizable collections")

    for name in known:
        docs = data[name]
        if not isinstance(docs, list):
            warnings.append(f"'{name}' is not a list and will be skipped")
            continue
        for index, doc in enumerate(docs):
            try:
                validate_document(name, doc)
            except DocumentValidationError as e:
                errors.append(f"{name}[{index}]: {e}")

    return {"valid": not errors, "errors": errors, "warnings": warnings}


# ----------------------------------------------------------------------
# Restore
# ----------------------------------------------------------------------


async def restore_collections(store: CollectionStore, raw: Any) -> RestoreReport:
    """Replace live collections with the contents of a decoded artifact.

    Every collection named in ``data`` is cleared and bulk-written, in
    registry order.  Non-list values are skipped without clearing.  The
    first failure stops the import; the remaining collections are
    reported ``not_attempted``.

    Raises:
        BackupValidationError: If validation fails.  Nothing is mutated.
    """
    validation = validate_backup(raw)
    if validation["errors"]:
        raise BackupValidationError(
            f"Invalid backup: {'; '.join(validation['errors'])}",
            validation["errors"],
        )

    data = raw["data"]
    report = RestoreReport(warnings=validation["warnings"])
    stopped = False

    for name in COLLECTIONS:
        if name not in data:
            continue
        if stopped:
            report.results.append(
                CollectionRestoreResult(collection=name, status="not_attempted")
            )
            continue

        docs = data[name]
        if not isinstance(docs, list):
            report.results.append(
                CollectionRestoreResult(collection=name, status="skipped", error="not a list")
            )
            continue

        result = CollectionRestoreResult(collection=name, status="failed")
        try:
            await store.clear(name)
            result.cleared = True
            bulk = await store.save_many(name, docs)
        except PartialBatchError as e:
            result.written = e.succeeded
            result.error = str(e)
            stopped = True
        except CollectionStoreError as e:
            result.error = str(e)
            stopped = True
        else:
            result.status = "restored"
            result.backend = bulk.backend
            result.written = bulk.count
        report.results.append(result)

    if report.complete:
        logger.info(f"Restore complete: {', '.join(report.restored) or 'nothing to restore'}")
    else:
        failed = report.failed
        logger.error(
            f"Restore stopped at '{failed.collection}': {failed.error}. "
            f"Already replaced: {', '.join(report.restored) or 'none'}"
        )
    return report


async def restore_backup(store: CollectionStore, backup_path: str | Path) -> RestoreReport:
    """Read a backup file and restore it.

    Raises:
        FileNotFoundError: If the file does not exist.
        BackupValidationError: If the file is not a valid artifact.
    """
    raw = read_backup(backup_path)
    return await restore_collections(store, raw)
