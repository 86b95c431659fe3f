"""Remote gateway adapter.

A thin async HTTP client for the collection service.  Binary values in
outgoing documents are normalized to ``data:`` URLs before sending.

Expected service routes (relative to ``base_url``)
--------------------------------------------------
GET    /health                 - 2xx iff service and database reachable
GET    /{collection}           - list documents
POST   /{collection}           - upsert one document
DELETE /{collection}/{id}      - delete one document
POST   /{collection}/bulk      - transactional bulk upsert
POST   /{collection}/clear     - delete every document

Errors come back as a non-2xx status with a ``{error, details}`` body.
Every failure (transport, timeout, non-2xx, undecodable body) is raised
as ``RemoteUnavailableError``.

Usage:
    from collection_store.adapters.remote import RemoteGatewayAdapter

    async with RemoteGatewayAdapter("http://localhost:3001/api") as gateway:
        await gateway.save("products", {"id": "p1", "name": "Widget"})
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from collection_store.collections import is_append_only
from collection_store.errors import RemoteUnavailableError
from collection_store.payload import normalize_document

logger = logging.getLogger(__name__)


class RemoteGatewayAdapter:
    """HTTP implementation of the ``CollectionBackend`` protocol.

    Args:
        base_url: Base URL of the service API (e.g. ``http://host/api``).
        timeout: Per-request timeout in seconds.  Also bounds the health
            check used by ``AvailabilityProbe``.
        headers: Extra headers sent with every request.
        transport: Optional ``httpx`` transport, for tests or in-process
            ASGI apps.
    """

    name = "remote"

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Content-Type": "application/json", **(headers or {})},
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            raise RemoteUnavailableError(
                f"{method} {path} failed: {type(e).__name__}: {e}"
            ) from e

        logger.debug(f"{method} {path} -> {response.status_code}")
        if not response.is_success:
            try:
                details = response.json()
            except ValueError:
                details = response.text
            raise RemoteUnavailableError(
                f"{method} {path} returned {response.status_code}",
                status_code=response.status_code,
                details=details,
            )

        try:
            return response.json()
        except ValueError as e:
            raise RemoteUnavailableError(
                f"{method} {path} returned a non-JSON body"
            ) from e

    @staticmethod
    def _item_path(collection: str, item_id: Any) -> str:
        segment = quote(str(item_id), safe="")
        # Dot segments would be collapsed by URL normalization
        if segment in (".", ".."):
            segment = segment.replace(".", "%2E")
        return f"/{collection}/{segment}"

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def health(self) -> dict:
        """Call the health route.

        Raises:
            RemoteUnavailableError: If the service or its database is down.
        """
        return await self._request("GET", "/health")

    # ------------------------------------------------------------------
    # CollectionBackend
    # ------------------------------------------------------------------

    async def get_all(self, collection: str) -> list[dict]:
        docs = await self._request("GET", f"/{collection}")
        if not isinstance(docs, list):
            raise RemoteUnavailableError(
                f"GET /{collection} returned {type(docs).__name__}, expected a list"
            )
        return docs

    async def save(self, collection: str, doc: dict) -> dict:
        """Upsert *doc* remotely.

        Returns:
            The stored document echoed by the service.  Events are not
            echoed; for them the normalized document that was sent is
            returned, with the server-assigned ``id`` when reported.
        """
        payload = normalize_document(doc)
        stored = await self._request("POST", f"/{collection}", json=payload)
        if is_append_only(collection):
            if isinstance(stored, dict) and "id" in stored:
                return {**payload, "id": stored["id"]}
            return payload
        return stored

    async def remove(self, collection: str, item_id: Any) -> None:
        await self._request("DELETE", self._item_path(collection, item_id))

    async def clear(self, collection: str) -> None:
        await self._request("POST", f"/{collection}/clear")

    async def save_many(self, collection: str, docs: list[dict]) -> int:
        """Bulk upsert; the service applies the whole batch or nothing."""
        payload = normalize_document(docs)
        result = await self._request("POST", f"/{collection}/bulk", json=payload)
        return int(result.get("count", len(docs))) if isinstance(result, dict) else len(docs)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RemoteGatewayAdapter":
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()
