"""Backup artifact and restore report models.

A backup artifact holds every collection of the registry:

    {
        "version": 1,
        "timestamp": "2026-01-15T10:30:00+00:00",
        "data": {"products": [...], "orders": [...], ...}
    }

Restores are not globally atomic: collections are replaced one at a time,
and ``RestoreReport`` records the outcome of each so callers can see
exactly which collections were replaced before a failure.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

BACKUP_FORMAT_VERSION = 1

RestoreStatus = Literal["restored", "skipped", "failed", "not_attempted"]


class BackupArtifact(BaseModel):
    """Versioned snapshot of all collections."""

    version: int = BACKUP_FORMAT_VERSION
    timestamp: str                                   # ISO 8601, UTC
    data: dict[str, list[Any]] = Field(default_factory=dict)

    @property
    def counts(self) -> dict[str, int]:
        return {name: len(docs) for name, docs in self.data.items()}


class CollectionRestoreResult(BaseModel):
    """Outcome of restoring one collection."""

    collection: str
    status: RestoreStatus
    backend: str | None = None        # backend that received the writes
    cleared: bool = False             # existing documents were deleted
    written: int = 0                  # documents written
    error: str | None = None


class RestoreReport(BaseModel):
    """Per-collection results of a restore, in the order attempted."""

    results: list[CollectionRestoreResult] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def complete(self) -> bool:
        """True when no collection failed or was left unattempted."""
        return all(r.status in ("restored", "skipped") for r in self.results)

    @property
    def restored(self) -> list[str]:
        return [r.collection for r in self.results if r.status == "restored"]

    @property
    def failed(self) -> CollectionRestoreResult | None:
        for result in self.results:
            if result.status == "failed":
                return result
        return None

    def format_report(self) -> str:
        """Format the report as human-readable text."""
        if self.complete:
            lines = [f"Restore complete ({len(self.restored)} collections replaced)"]
        else:
            lines = ["Restore INCOMPLETE - data is partially replaced:"]

        for r in self.results:
            if r.status == "restored":
                lines.append(f"  - {r.collection}: restored {r.written} documents")
            elif r.status == "skipped":
                lines.append(f"  - {r.collection}: skipped ({r.error})")
            elif r.status == "failed":
                state = "cleared, " if r.cleared else ""
                lines.append(
                    f"  - {r.collection}: FAILED ({state}{r.written} written): {r.error}"
                )
            else:
                lines.append(f"  - {r.collection}: not attempted (left unchanged)")

        if self.warnings:
            lines.append(f"\n  Warnings ({len(self.warnings)}):")
            for warning in self.warnings:
                lines.append(f"    - {warning}")

        return "\n".join(lines)
