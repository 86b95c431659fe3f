"""Dual-backend collection store.

``CollectionStore`` unifies the local cache and the remote gateway behind
one async API.  Every operation asks the ``BackendSelector`` whether the
remote should be used; if the remote call fails, the same operation is
replayed against the local cache.  Remote errors never reach the caller.

Errors that do reach the caller:

- ``DocumentValidationError``: raised before any backend is touched.
- ``LocalStorageError``: the local cache failed after the remote was
  skipped or had already failed.
- ``PartialBatchError``: a local-fallback ``save_many`` stopped part way.

Usage:
    from collection_store import CollectionStore, LocalCacheAdapter, RemoteGatewayAdapter

    store = CollectionStore(
        LocalCacheAdapter("cache.db"),
        remote=RemoteGatewayAdapter("http://localhost:3001/api"),
    )
    await store.initialize()
    await store.save("products", {"id": "p1", "name": "Widget"})
    products = await store.get_all("products")
    await store.close()
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pydantic import BaseModel

from collection_store.adapters.base import CollectionBackend
from collection_store.adapters.local import LocalCacheAdapter
from collection_store.adapters.remote import RemoteGatewayAdapter
from collection_store.collections import require_collection, validate_document
from collection_store.errors import DocumentValidationError, RemoteUnavailableError
from collection_store.probe import AvailabilityProbe, BackendSelector, BackendStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BulkWriteResult(BaseModel):
    """Result of ``CollectionStore.save_many``."""

    collection: str
    backend: str  # "remote" or "local"
    count: int


class CollectionStore:
    """Collection façade with per-operation remote-to-local fallback.

    The store owns the current ``BackendStatus``.  It starts unchecked
    (local) until ``initialize()`` or the selector's re-probe policy runs
    the probe.

    Args:
        local: Embedded cache, the fallback of last resort.
        remote: Remote gateway.  ``None`` runs the store local-only.
        selector: Backend selection policy (defaults to a 30s re-probe
            interval).
        probe: Availability probe (defaults to probing *remote*).
    """

    def __init__(
        self,
        local: LocalCacheAdapter,
        remote: RemoteGatewayAdapter | None = None,
        selector: BackendSelector | None = None,
        probe: AvailabilityProbe | None = None,
    ) -> None:
        self._local = local
        self._remote = remote
        self._selector = selector or BackendSelector()
        self._probe = probe or AvailabilityProbe(remote)
        self._status = BackendStatus.unchecked()
        self._status_lock = asyncio.Lock()

    @property
    def status(self) -> BackendStatus:
        return self._status

    @property
    def local(self) -> LocalCacheAdapter:
        return self._local

    @property
    def remote(self) -> RemoteGatewayAdapter | None:
        return self._remote

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> BackendStatus:
        """Open the local cache and probe the remote once.

        Raises:
            LocalStorageError: If the local cache cannot be opened.
        """
        await self._local.open()
        return await self.refresh_status()

    async def refresh_status(self) -> BackendStatus:
        """Re-run the availability probe and adopt its result."""
        async with self._status_lock:
            self._status = await self._probe.check()
            return self._status

    async def close(self) -> None:
        await self._local.close()
        if self._remote is not None:
            await self._remote.close()

    async def __aenter__(self) -> "CollectionStore":
        await self.initialize()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Backend selection
    # ------------------------------------------------------------------

    async def _remote_selected(self) -> bool:
        if self._remote is None:
            return False
        if self._selector.should_reprobe(self._status):
            async with self._status_lock:
                # Another task may have re-probed while we waited
                if self._selector.should_reprobe(self._status):
                    self._status = await self._probe.check()
        return self._selector.use_remote(self._status)

    async def _dispatch(
        self,
        operation: str,
        collection: str,
        call: Callable[[CollectionBackend], Awaitable[T]],
    ) -> tuple[T, str]:
        """Run *call* on the selected backend, falling back to local.

        Returns:
            Tuple of (result, name of the backend that produced it).
        """
        if await self._remote_selected():
            try:
                return await call(self._remote), self._remote.name
            except RemoteUnavailableError as e:
                logger.warning(
                    f"Remote {operation} failed for {collection}, using local cache: {e}"
                )
                # 4xx means the service is up but refused this request
                if e.status_code is None or e.status_code >= 500:
                    self._status = self._selector.mark_failed(str(e))
        return await call(self._local), self._local.name

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def get_all(self, collection: str) -> list[dict]:
        """Return every document in *collection*.

        Falls back to the (possibly stale or empty) local cache when the
        remote fails.
        """
        require_collection(collection)
        docs, _ = await self._dispatch(
            "get_all", collection, lambda backend: backend.get_all(collection)
        )
        return docs

    async def save(self, collection: str, doc: dict) -> dict:
        """Upsert *doc*; events are appended and get an id on insert.

        Raises:
            DocumentValidationError: If a keyed document has no ``id`` or
                an event has no ``type``.
        """
        require_collection(collection)
        validate_document(collection, doc)
        stored, _ = await self._dispatch(
            "save", collection, lambda backend: backend.save(collection, doc)
        )
        return stored

    async def remove(self, collection: str, item_id: Any) -> None:
        """Delete one document.  Removing a missing id is not an error."""
        require_collection(collection)
        if item_id is None:
            raise DocumentValidationError("remove() requires an id")
        await self._dispatch(
            "remove", collection, lambda backend: backend.remove(collection, item_id)
        )

    async def clear(self, collection: str) -> None:
        """Delete every document in *collection* on the active backend."""
        require_collection(collection)
        await self._dispatch("clear", collection, lambda backend: backend.clear(collection))

    async def save_many(self, collection: str, docs: list[dict]) -> BulkWriteResult:
        """Write a batch of documents.

        Every document is validated before anything is written.  The
        remote path is all-or-nothing; the local fallback writes one
        document at a time and is not rolled back on failure.

        Raises:
            DocumentValidationError: If *docs* is not a list or any
                document is invalid.
            PartialBatchError: If the local fallback stopped part way.
        """
        require_collection(collection)
        if not isinstance(docs, list):
            raise DocumentValidationError(
                f"save_many() expects a list of documents, got {type(docs).__name__}"
            )
        for doc in docs:
            validate_document(collection, doc)

        count, backend = await self._dispatch(
            "save_many", collection, lambda b: b.save_many(collection, docs)
        )
        return BulkWriteResult(collection=collection, backend=backend, count=count)
