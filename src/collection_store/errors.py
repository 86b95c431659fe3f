"""Exception hierarchy for collection-store.

All errors raised by the store, its adapters and the backup subsystem
derive from ``CollectionStoreError`` so callers can catch one base class.

Usage:
    from collection_store.errors import LocalStorageError, PartialBatchError

    try:
        await store.save_many("products", items)
    except PartialBatchError as e:
        print(f"{e.succeeded}/{e.total} written before failure")
"""

from typing import Any


class CollectionStoreError(Exception):
    """Base class for every collection-store error."""

    pass


class RemoteUnavailableError(CollectionStoreError):
    """Raised when the remote service cannot serve a request.

    Covers transport errors, timeouts and non-2xx responses.  The store
    recovers from this error by falling back to the local cache; it is
    never surfaced to store callers.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class LocalStorageError(CollectionStoreError):
    """Raised when the embedded local cache fails to open or write."""

    pass


class DocumentValidationError(CollectionStoreError, ValueError):
    """Raised when a document, batch or collection name is rejected."""

    pass


class PartialBatchError(CollectionStoreError):
    """Raised when a non-transactional bulk write stops part way.

    Documents written before the failure are not rolled back.
    """

    def __init__(self, message: str, succeeded: int, total: int) -> None:
        super().__init__(message)
        self.succeeded = succeeded
        self.total = total


class BackupValidationError(CollectionStoreError, ValueError):
    """Raised when a backup artifact fails structural validation."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []
