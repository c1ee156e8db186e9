"""Raw collection read/write endpoint used by browser clients."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from logitrack.core.logging import logger
from logitrack.models.fleet import StorageWriteRequest
from logitrack.services.storage import get_collection_store

router = APIRouter(prefix="/api/storage", tags=["storage"])


@router.get("")
def read_storage(collection: Optional[str] = Query(default=None)):
    store = get_collection_store()
    try:
        if collection:
            return store.get(collection)
        return store.collections()
    except Exception as exc:
        logger.error("Failed to read collection store", collection=collection, error=str(exc))
        return JSONResponse(status_code=500, content={"error": "Failed to read data"})


@router.post("")
def write_storage(request: StorageWriteRequest):
    if not request.collection or not request.collection.strip():
        return JSONResponse(status_code=400, content={"error": "Missing collection"})
    if not isinstance(request.data, list):
        return JSONResponse(status_code=400, content={"error": "Collection data must be a list"})

    try:
        get_collection_store().set(request.collection, request.data)
    except Exception as exc:
        logger.error("Failed to write collection store", collection=request.collection, error=str(exc))
        return JSONResponse(status_code=500, content={"error": "Failed to save data"})
    return {"success": True}
