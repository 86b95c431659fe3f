"""Collection backends package.

Provides the ``CollectionBackend`` Protocol and its two implementations:
the embedded ``LocalCacheAdapter`` and the HTTP ``RemoteGatewayAdapter``.

Usage:
    from collection_store.adapters import (
        CollectionBackend,
        LocalCacheAdapter,
        RemoteGatewayAdapter,
    )
"""

from collection_store.adapters.base import CollectionBackend
from collection_store.adapters.local import LocalCacheAdapter
from collection_store.adapters.remote import RemoteGatewayAdapter

__all__ = [
    "CollectionBackend",
    "LocalCacheAdapter",
    "RemoteGatewayAdapter",
]
