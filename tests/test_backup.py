"""Tests for backup export, validation and restore.

Round trips run through a real CollectionStore wired to the in-process
service; failure reporting uses an AsyncMock store.
"""

import json
from datetime import date
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from collection_store.backup.backup_restore import (
    backup_filename,
    export_collections,
    parse_backup,
    read_backup,
    restore_backup,
    restore_collections,
    serialize_backup,
    validate_backup,
    write_backup,
)
from collection_store.backup.models import BACKUP_FORMAT_VERSION, BackupArtifact
from collection_store.collections import COLLECTIONS
from collection_store.errors import (
    BackupValidationError,
    LocalStorageError,
    PartialBatchError,
)
from collection_store.store import BulkWriteResult, CollectionStore


def _artifact(**data) -> dict:
    return {"version": 1, "timestamp": "2026-01-15T10:30:00+00:00", "data": data}


def _mock_store() -> MagicMock:
    store = MagicMock()
    store.clear = AsyncMock()

    async def save_many(collection, docs):
        return BulkWriteResult(collection=collection, backend="remote", count=len(docs))

    store.save_many = AsyncMock(side_effect=save_many)
    return store


# ------------------------------------------------------------------
# Export
# ------------------------------------------------------------------


class TestExport:
    """Artifact assembly and file output."""

    async def test_export_contains_every_collection_in_order(self, store: CollectionStore):
        await store.save("products", {"id": "p1", "name": "Widget"})

        artifact = await export_collections(store)

        assert artifact.version == BACKUP_FORMAT_VERSION
        assert list(artifact.data) == list(COLLECTIONS)
        assert artifact.data["products"] == [{"id": "p1", "name": "Widget"}]
        assert artifact.counts["products"] == 1
        assert artifact.counts["orders"] == 0

    def test_serialize_is_indented_json(self):
        artifact = BackupArtifact(timestamp="t", data={"products": [{"id": "p1"}]})
        text = serialize_backup(artifact)
        assert json.loads(text) == {"version": 1, "timestamp": "t", "data": {"products": [{"id": "p1"}]}}
        assert "\n  " in text

    def test_backup_filename(self):
        assert backup_filename(date(2026, 1, 15)) == "backup-2026-01-15.json"

    async def test_write_backup_default_location(
        self, store: CollectionStore, tmp_path: Path, monkeypatch
    ):
        """Without an output path the file lands in ./backups/."""
        monkeypatch.chdir(tmp_path)
        path = await write_backup(store)

        assert Path(path).parent.resolve() == (tmp_path / "backups").resolve()
        assert Path(path).name.startswith("backup-")
        assert json.loads(Path(path).read_text())["version"] == 1

    async def test_write_backup_explicit_path(self, store: CollectionStore, tmp_path: Path):
        target = tmp_path / "nested" / "shop.json"
        assert await write_backup(store, output_path=str(target)) == str(target)
        assert target.exists()


# ------------------------------------------------------------------
# Validation
# ------------------------------------------------------------------


class TestValidateBackup:
    """Errors block the import; warnings do not."""

    def test_valid_artifact(self):
        result = validate_backup(_artifact(products=[{"id": "p1"}], analyticsEvents=[]))
        assert result == {"valid": True, "errors": [], "warnings": []}

    def test_root_must_be_object(self):
        assert validate_backup([1, 2])["valid"] is False

    def test_missing_data(self):
        result = validate_backup({"version": 1, "timestamp": "t"})
        assert result["valid"] is False
        assert "'data' object missing" in result["errors"][0]

    def test_unsupported_version(self):
        raw = _artifact(products=[])
        raw["version"] = 2
        assert validate_backup(raw)["valid"] is False

    def test_missing_version_is_warning(self):
        raw = _artifact(products=[])
        del raw["version"]
        result = validate_backup(raw)
        assert result["valid"] is True
        assert result["warnings"] == ["Missing 'version' field"]

    def test_unknown_keys_warned(self):
        result = validate_backup(_artifact(products=[], legacyThings=[{"id": 1}]))
        assert result["valid"] is True
        assert "legacyThings" in result["warnings"][0]

    def test_only_unknown_keys_is_error(self):
        result = validate_backup(_artifact(legacyThings=[]))
        assert result["errors"] == ["Backup contains no recognizable collections"]

    def test_non_list_value_warned(self):
        result = validate_backup(_artifact(products={"id": "p1"}))
        assert result["valid"] is True
        assert "'products' is not a list" in result["warnings"][0]

    def test_invalid_documents_reported_with_index(self):
        result = validate_backup(
            _artifact(products=[{"id": "p1"}, {"name": "x"}], analyticsEvents=[{"id": 3}])
        )
        assert result["errors"] == [
            "products[1]: Item must have an id",
            "analyticsEvents[0]: Event must have a type",
        ]


class TestReadBackup:
    """File-level checks."""

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            read_backup(tmp_path / "nope.json")

    def test_wrong_extension(self, tmp_path: Path):
        path = tmp_path / "backup.txt"
        path.write_text("{}")
        with pytest.raises(BackupValidationError, match=".json"):
            read_backup(path)

    def test_invalid_json(self):
        with pytest.raises(BackupValidationError, match="not valid JSON"):
            parse_backup("{broken")


# ------------------------------------------------------------------
# Restore
# ------------------------------------------------------------------


class TestRestore:
    """Replacing live collections."""

    async def test_round_trip(self, store: CollectionStore, tmp_path: Path):
        """Export, wipe, restore: keyed documents come back identical."""
        await store.save_many("products", [{"id": "p1", "name": "Widget"}, {"id": "p2"}])
        await store.save("siteConfig", {"id": "main", "theme": "dark"})
        await store.save("analyticsEvents", {"type": "view", "data": {"page": "/"}})

        path = await write_backup(store, output_path=str(tmp_path / "b.json"))
        original = json.loads(Path(path).read_text())["data"]

        await store.clear("products")
        await store.save("products", {"id": "stray"})

        report = await restore_backup(store, path)

        assert report.complete
        assert await store.get_all("products") == original["products"]
        assert await store.get_all("siteConfig") == [{"id": "main", "theme": "dark"}]
        [event] = await store.get_all("analyticsEvents")
        assert event["type"] == "view"
        assert event["timestamp"] == original["analyticsEvents"][0]["timestamp"]

    async def test_invalid_artifact_mutates_nothing(self, store: CollectionStore):
        """Missing data raises before any collection is cleared."""
        await store.save("products", {"id": "p1"})

        with pytest.raises(BackupValidationError):
            await restore_collections(store, {"version": 1, "timestamp": "t"})

        assert await store.get_all("products") == [{"id": "p1"}]

    async def test_invalid_document_mutates_nothing(self, store: CollectionStore):
        """A bad document anywhere aborts before the first clear."""
        await store.save("products", {"id": "p1"})
        raw = _artifact(products=[], orders=[{"total": 5}])

        with pytest.raises(BackupValidationError) as exc_info:
            await restore_collections(store, raw)

        assert exc_info.value.errors == ["orders[0]: Item must have an id"]
        assert await store.get_all("products") == [{"id": "p1"}]

    async def test_absent_collections_untouched(self, store: CollectionStore):
        """Only collections present in the artifact are replaced."""
        await store.save("users", {"id": "u1"})
        report = await restore_collections(store, _artifact(products=[{"id": "p9"}]))

        assert report.restored == ["products"]
        assert await store.get_all("users") == [{"id": "u1"}]

    async def test_unknown_keys_ignored_and_non_lists_skipped(self):
        store = _mock_store()
        raw = _artifact(products=[{"id": "p1"}], orders="oops", legacy=[{"id": 1}])

        report = await restore_collections(store, raw)

        assert report.complete
        assert [(r.collection, r.status) for r in report.results] == [
            ("products", "restored"),
            ("orders", "skipped"),
        ]
        store.clear.assert_awaited_once_with("products")
        assert len(report.warnings) == 2

    async def test_registry_order(self):
        """Collections are restored in registry order, not artifact order."""
        store = _mock_store()
        raw = _artifact(comments=[], users=[], banners=[])

        await restore_collections(store, raw)

        cleared = [call.args[0] for call in store.clear.await_args_list]
        assert cleared == ["banners", "users", "comments"]

    async def test_failure_stops_and_reports(self):
        """A failure stops the import and marks later collections."""
        store = _mock_store()

        async def save_many(collection, docs):
            if collection == "reviews":
                raise PartialBatchError("disk full", succeeded=1, total=2)
            return BulkWriteResult(collection=collection, backend="local", count=len(docs))

        store.save_many.side_effect = save_many
        raw = _artifact(
            products=[{"id": "p1"}],
            reviews=[{"id": "r1"}, {"id": "r2"}],
            orders=[{"id": "o1"}],
        )

        report = await restore_collections(store, raw)

        assert not report.complete
        assert report.restored == ["products"]
        assert report.failed.collection == "reviews"
        assert report.failed.cleared is True
        assert report.failed.written == 1
        assert report.results[-1].collection == "orders"
        assert report.results[-1].status == "not_attempted"
        assert "orders" not in [c.args[0] for c in store.clear.await_args_list]
        assert "INCOMPLETE" in report.format_report()

    async def test_clear_failure_reports_not_cleared(self):
        store = _mock_store()
        store.clear.side_effect = LocalStorageError("read-only file")

        report = await restore_collections(store, _artifact(products=[{"id": "p1"}]))

        assert report.failed.cleared is False
        assert report.failed.written == 0
        assert "read-only file" in report.failed.error
