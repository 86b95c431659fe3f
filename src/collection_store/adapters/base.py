"""Collection backend protocol definition.

Defines the ``CollectionBackend`` Protocol that both the local cache and
the remote gateway implement.  All methods are ``async def``.

Usage:
    from collection_store.adapters.base import CollectionBackend

    async def copy_products(src: CollectionBackend, dst: CollectionBackend) -> None:
        docs = await src.get_all("products")
        await dst.clear("products")
        await dst.save_many("products", docs)
"""

from typing import Any, Protocol


class CollectionBackend(Protocol):
    """Backend interface used by ``CollectionStore``.

    Implementations know nothing about each other; backend selection and
    fallback live entirely in the store.
    """

    name: str

    async def get_all(self, collection: str) -> list[dict]:
        """Return every document in *collection*.

        Returns:
            List of documents.  Empty list if the collection is empty.
        """
        ...

    async def save(self, collection: str, doc: dict) -> dict:
        """Upsert *doc* (or append it, for the event collection).

        Returns:
            The stored document as reported by the backend.
        """
        ...

    async def remove(self, collection: str, item_id: Any) -> None:
        """Delete one document by id.  Missing ids are not an error."""
        ...

    async def clear(self, collection: str) -> None:
        """Delete every document in *collection*."""
        ...

    async def save_many(self, collection: str, docs: list[dict]) -> int:
        """Write a batch of documents.

        Returns:
            Number of documents written.

        Raises:
            PartialBatchError: If the backend is not transactional and
                stopped part way through the batch.
        """
        ...

    async def close(self) -> None:
        """Release connections and other resources."""
        ...
