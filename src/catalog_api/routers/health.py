import os

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from catalog_api.adapters.records import MongoRecordStore
from catalog_api.adapters.storage import LocalFileStore
from catalog_api.dependencies import get_file_store, get_record_store
from catalog_api.errors import DatabaseError

router = APIRouter()


@router.get("/health")
async def health_check(
    file_store: LocalFileStore = Depends(get_file_store),
    record_store: MongoRecordStore = Depends(get_record_store),
):
    """
    Health check endpoint for monitoring API status and component readiness.

    Returns status of the API, the upload directory and the database.
    """
    health_status = {
        "status": "ok",
        "components": {
            "api": "ready",
            "storage": "ready",
            "database": "initializing"
        },
        "ready": False
    }

    if not await run_in_threadpool(os.access, file_store.root_dir, os.W_OK):
        health_status["components"]["storage"] = f"error: {file_store.root_dir} is not writable"
        health_status["status"] = "degraded"

    try:
        await run_in_threadpool(record_store.ping)
        health_status["components"]["database"] = "ready"
    except DatabaseError as e:
        health_status["components"]["database"] = f"error: {e.message}"
        health_status["status"] = "degraded"

    health_status["ready"] = all(
        state == "ready" for state in health_status["components"].values()
    )
    return health_status
