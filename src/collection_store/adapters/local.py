"""Embedded local cache adapter.

Provides ``LocalCacheAdapter``, a ``CollectionBackend`` backed by a SQLite
file through SQLAlchemy's async engine and the ``aiosqlite`` driver.  It
is the fallback of last resort: durable across restarts, never synced
with the remote service.

Keyed collections share one table keyed by ``(collection_name, item_id)``.
The event collection lives in its own table with an autoincrement id, so
events saved without an id get a locally assigned integer.

Usage:
    from collection_store.adapters.local import LocalCacheAdapter

    cache = LocalCacheAdapter(".collection-store/cache.db")
    await cache.save("products", {"id": "p1", "name": "Widget"})
    docs = await cache.get_all("products")
    await cache.close()
"""

import asyncio
import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from collection_store.collections import document_key, is_append_only
from collection_store.engine import create_async_engine_pooled, sqlite_url_for_path
from collection_store.errors import LocalStorageError, PartialBatchError
from collection_store.payload import normalize_document

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS cache_documents (
        collection_name VARCHAR(50) NOT NULL,
        item_id VARCHAR(255) NOT NULL,
        item_data TEXT NOT NULL,
        PRIMARY KEY (collection_name, item_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS cache_events (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        item_data TEXT NOT NULL
    )
    """,
)


@contextmanager
def _storage_errors(action: str, collection: str) -> Iterator[None]:
    """Translate SQLAlchemy and filesystem errors to ``LocalStorageError``."""
    try:
        yield
    except (SQLAlchemyError, OSError) as e:
        raise LocalStorageError(
            f"Local cache {action} failed for '{collection}': {e}"
        ) from e


def _event_id(doc: dict) -> int | None:
    item_id = doc.get("id")
    if isinstance(item_id, int) and not isinstance(item_id, bool):
        return item_id
    return None


class LocalCacheAdapter:
    """SQLite implementation of the ``CollectionBackend`` protocol.

    The schema is created lazily on first use, guarded by an
    ``asyncio.Lock`` so concurrent first calls create it exactly once.
    Every operation runs in its own transaction; nothing is composed
    across calls.

    Args:
        path: Filesystem path of the SQLite database.  Parent directories
            are created on open.
        **engine_kwargs: Additional keyword arguments forwarded to
            ``create_async_engine_pooled``.
    """

    name = "local"

    def __init__(self, path: str | Path, **engine_kwargs: Any) -> None:
        self._path = Path(path)
        self._engine_kwargs = engine_kwargs
        self._engine: AsyncEngine | None = None
        self._lock: asyncio.Lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def open(self) -> None:
        """Create the database file and tables if they do not exist.

        Raises:
            LocalStorageError: If the file or schema cannot be created.
        """
        await self._get_engine()

    async def _get_engine(self) -> AsyncEngine:
        async with self._lock:
            if self._engine is not None:
                return self._engine
            with _storage_errors("open", str(self._path)):
                self._path.parent.mkdir(parents=True, exist_ok=True)
                engine = create_async_engine_pooled(
                    sqlite_url_for_path(str(self._path)), **self._engine_kwargs
                )
                async with engine.begin() as conn:
                    for statement in _SCHEMA:
                        await conn.execute(text(statement))
            logger.debug(f"Local cache opened at {self._path}")
            self._engine = engine
            return engine

    # ------------------------------------------------------------------
    # CollectionBackend
    # ------------------------------------------------------------------

    async def get_all(self, collection: str) -> list[dict]:
        """Return every cached document; events are listed newest first."""
        engine = await self._get_engine()
        with _storage_errors("read", collection):
            async with engine.connect() as conn:
                if is_append_only(collection):
                    result = await conn.execute(
                        text("SELECT id, item_data FROM cache_events ORDER BY id DESC")
                    )
                    return [
                        {**json.loads(item_data), "id": row_id}
                        for row_id, item_data in result.fetchall()
                    ]
                result = await conn.execute(
                    text(
                        "SELECT item_data FROM cache_documents "
                        "WHERE collection_name = :collection ORDER BY item_id"
                    ),
                    {"collection": collection},
                )
                return [json.loads(item_data) for (item_data,) in result.fetchall()]

    async def save(self, collection: str, doc: dict) -> dict:
        """Upsert *doc* and return it.

        Binary values are stored as ``data:`` URLs; the returned document
        is the caller's own (with a new ``id`` for events saved without one).
        """
        engine = await self._get_engine()
        with _storage_errors("write", collection):
            if is_append_only(collection):
                return await self._save_event(engine, doc)

            payload = json.dumps(normalize_document(doc))
            async with engine.begin() as conn:
                await conn.execute(
                    text(
                        """
                        INSERT INTO cache_documents (collection_name, item_id, item_data)
                        VALUES (:collection, :item_id, :item_data)
                        ON CONFLICT (collection_name, item_id)
                        DO UPDATE SET item_data = excluded.item_data
                        """
                    ),
                    {
                        "collection": collection,
                        "item_id": document_key(doc["id"]),
                        "item_data": payload,
                    },
                )
            return doc

    async def _save_event(self, engine: AsyncEngine, doc: dict) -> dict:
        event_id = _event_id(doc)
        body = {k: v for k, v in doc.items() if k != "id"}
        payload = json.dumps(normalize_document(body))

        async with engine.begin() as conn:
            if event_id is not None:
                await conn.execute(
                    text(
                        """
                        INSERT INTO cache_events (id, item_data) VALUES (:id, :item_data)
                        ON CONFLICT (id) DO UPDATE SET item_data = excluded.item_data
                        """
                    ),
                    {"id": event_id, "item_data": payload},
                )
                return doc
            result = await conn.execute(
                text("INSERT INTO cache_events (item_data) VALUES (:item_data)"),
                {"item_data": payload},
            )
            return {**doc, "id": result.lastrowid}

    async def remove(self, collection: str, item_id: Any) -> None:
        engine = await self._get_engine()
        with _storage_errors("delete", collection):
            async with engine.begin() as conn:
                if is_append_only(collection):
                    try:
                        event_id = int(item_id)
                    except (TypeError, ValueError):
                        return
                    await conn.execute(
                        text("DELETE FROM cache_events WHERE id = :id"),
                        {"id": event_id},
                    )
                    return
                await conn.execute(
                    text(
                        "DELETE FROM cache_documents "
                        "WHERE collection_name = :collection AND item_id = :item_id"
                    ),
                    {"collection": collection, "item_id": document_key(item_id)},
                )

    async def clear(self, collection: str) -> None:
        engine = await self._get_engine()
        with _storage_errors("clear", collection):
            async with engine.begin() as conn:
                if is_append_only(collection):
                    await conn.execute(text("DELETE FROM cache_events"))
                else:
                    await conn.execute(
                        text("DELETE FROM cache_documents WHERE collection_name = :collection"),
                        {"collection": collection},
                    )

    async def save_many(self, collection: str, docs: list[dict]) -> int:
        """Save documents one at a time.

        There is no cross-document atomicity: documents written before a
        failure stay written.

        Raises:
            PartialBatchError: On the first failed document, reporting how
                many were written.
        """
        succeeded = 0
        for doc in docs:
            try:
                await self.save(collection, doc)
            except LocalStorageError as e:
                raise PartialBatchError(
                    f"Local bulk save for '{collection}' stopped after "
                    f"{succeeded} of {len(docs)} documents: {e}",
                    succeeded=succeeded,
                    total=len(docs),
                ) from e
            succeeded += 1
        return succeeded

    async def close(self) -> None:
        """Dispose of the engine.  The adapter can be reopened afterwards."""
        async with self._lock:
            if self._engine is not None:
                await self._engine.dispose()
                self._engine = None
