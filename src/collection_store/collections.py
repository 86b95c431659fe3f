"""Collection registry.

The set of collection names is fixed.  Order matters: backups are
exported and restored in registry order.
"""

import json
from typing import Any, Literal

from collection_store.errors import DocumentValidationError
from collection_store.payload import normalize_document

CollectionName = Literal[
    "banners",
    "products",
    "downloads",
    "reviews",
    "siteConfig",
    "productShowcases",
    "contentBanners",
    "musicTracks",
    "analyticsEvents",
    "users",
    "cart",
    "orders",
    "comments",
]

COLLECTIONS: tuple[str, ...] = (
    "banners",
    "products",
    "downloads",
    "reviews",
    "siteConfig",
    "productShowcases",
    "contentBanners",
    "musicTracks",
    "analyticsEvents",
    "users",
    "cart",
    "orders",
    "comments",
)

# Append-only collection: ids are assigned on insert, never upserted
ANALYTICS_EVENTS = "analyticsEvents"


def is_known_collection(name: str) -> bool:
    return name in COLLECTIONS


def is_append_only(name: str) -> bool:
    return name == ANALYTICS_EVENTS


def require_collection(name: str) -> str:
    """Return *name* unchanged, or raise if it is not in the registry."""
    if name not in COLLECTIONS:
        raise DocumentValidationError(
            f"Unknown collection '{name}'. "
            f"Known collections: {', '.join(COLLECTIONS)}"
        )
    return name


def document_key(item_id: Any) -> str:
    """Normalize a document id to the string key used by both backends.

    ``1`` and ``"1"`` address the same document.
    """
    return str(item_id)


def has_valid_id(doc: Any) -> bool:
    if not isinstance(doc, dict):
        return False
    item_id = doc.get("id")
    if isinstance(item_id, bool) or item_id is None:
        return False
    if isinstance(item_id, str):
        return item_id != ""
    return isinstance(item_id, int)


def validate_document(collection: str, doc: Any) -> None:
    """Check that *doc* can be written to *collection*.

    Keyed collections require a non-empty ``id``; the event collection
    requires a string ``type``.  Every value must be JSON-encodable once
    binary leaves are normalized.

    Raises:
        DocumentValidationError: If the document is not acceptable.
    """
    if not isinstance(doc, dict):
        raise DocumentValidationError(
            f"Document for '{collection}' must be an object, got {type(doc).__name__}"
        )
    if is_append_only(collection):
        if not isinstance(doc.get("type"), str) or not doc["type"]:
            raise DocumentValidationError("Event must have a type")
    elif not has_valid_id(doc):
        raise DocumentValidationError("Item must have an id")

    try:
        json.dumps(normalize_document(doc))
    except (TypeError, ValueError) as e:
        raise DocumentValidationError(
            f"Document for '{collection}' is not JSON-serializable: {e}"
        ) from e
