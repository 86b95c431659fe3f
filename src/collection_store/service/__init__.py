"""Collection service: relational repository and HTTP app.

The FastAPI app lives in ``collection_store.service.app`` and is not
imported here, so the repository can be used without loading the web
stack.

Usage:
    from collection_store.service import CollectionRepository
    from collection_store.service.app import create_app
"""

from collection_store.service.repository import CollectionRepository

__all__ = [
    "CollectionRepository",
]
