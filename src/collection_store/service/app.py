"""FastAPI application exposing the collection wire contract.

Routes (under ``settings.api_prefix``, default ``/api``):

    GET    /health
    GET    /{collection}
    POST   /{collection}
    DELETE /{collection}/{item_id}
    POST   /{collection}/bulk
    POST   /{collection}/clear

Errors are returned as ``{"error": ..., "details": ...}`` with a non-2xx
status.

Usage:
    uvicorn --factory collection_store.service.app:create_app
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, Body, Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from collection_store import __version__
from collection_store.collections import is_append_only, is_known_collection
from collection_store.config.settings import ServiceSettings, get_service_settings
from collection_store.errors import DocumentValidationError
from collection_store.factory import create_repository
from collection_store.service.repository import CollectionRepository

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, error: str, details: Any = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "details": details})


def _unknown_collection(collection: str) -> JSONResponse:
    return _error(404, "Unknown collection", collection)


def get_repository(request: Request) -> CollectionRepository:
    return request.app.state.repository


# ----------------------------------------------------------------------
# Routes
# ----------------------------------------------------------------------


@router.get("/health")
async def health(repo: CollectionRepository = Depends(get_repository)):
    try:
        await repo.ping()
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Health check failed: {e}")
        return _error(503, "Database not available", str(e))
    return {"status": "online", "database": "connected"}


@router.get("/{collection}")
async def list_documents(
    collection: str, repo: CollectionRepository = Depends(get_repository)
):
    if not is_known_collection(collection):
        return _unknown_collection(collection)
    return await repo.list_documents(collection)


@router.post("/{collection}")
async def upsert_document(
    collection: str,
    item: Any = Body(...),
    repo: CollectionRepository = Depends(get_repository),
):
    if not is_known_collection(collection):
        return _unknown_collection(collection)
    stored = await repo.upsert(collection, item)
    if is_append_only(collection):
        return {"success": True, "id": stored["id"]}
    return stored


# Ids may contain "/"
@router.delete("/{collection}/{item_id:path}")
async def delete_document(
    collection: str, item_id: str, repo: CollectionRepository = Depends(get_repository)
):
    if not is_known_collection(collection):
        return _unknown_collection(collection)
    await repo.delete(collection, item_id)
    return {"success": True}


@router.post("/{collection}/bulk")
async def bulk_upsert(
    collection: str,
    items: Any = Body(...),
    repo: CollectionRepository = Depends(get_repository),
):
    if not is_known_collection(collection):
        return _unknown_collection(collection)
    if not isinstance(items, list):
        return _error(400, "Body must be an array")
    count = await repo.bulk_upsert(collection, items)
    return {"success": True, "count": count}


@router.post("/{collection}/clear")
async def clear_collection(
    collection: str, repo: CollectionRepository = Depends(get_repository)
):
    if not is_known_collection(collection):
        return _unknown_collection(collection)
    await repo.clear(collection)
    return {"success": True}


# ----------------------------------------------------------------------
# Error handlers
# ----------------------------------------------------------------------


async def _validation_error(request: Request, exc: DocumentValidationError) -> JSONResponse:
    return _error(400, str(exc))


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(400, "Invalid request body", jsonable_encoder(exc.errors()))


async def _database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"DB operation error: {exc}")
    return _error(500, "Database operation failed", str(exc))


async def _database_unreachable(request: Request, exc: OSError) -> JSONResponse:
    # Driver connect failures (e.g. ConnectionRefusedError) are not DBAPI errors
    logger.error(f"Database unreachable: {exc}")
    return _error(503, "Database not available", str(exc))


# ----------------------------------------------------------------------
# Application factory
# ----------------------------------------------------------------------


def create_app(
    repository: CollectionRepository | None = None,
    settings: ServiceSettings | None = None,
) -> FastAPI:
    """Build the service app.

    Args:
        repository: Repository to serve.  When ``None`` one is created from
            *settings* at startup and disposed at shutdown.
        settings: Service settings (default: environment).
    """
    settings = settings or get_service_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.repository is None
        if owned:
            app.state.repository = create_repository(settings)
        try:
            await app.state.repository.init_schema()
        except (SQLAlchemyError, OSError) as e:
            # Keep serving; /health reports 503 until the database is back
            logger.error(f"Table initialization failed: {e}")
        try:
            yield
        finally:
            if owned:
                await app.state.repository.close()

    app = FastAPI(title="Collection Service", version=__version__, lifespan=lifespan)
    app.state.repository = repository
    app.include_router(router, prefix=settings.api_prefix)
    app.add_exception_handler(DocumentValidationError, _validation_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(SQLAlchemyError, _database_error)
    app.add_exception_handler(OSError, _database_unreachable)
    return app
