import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from catalog_api.adapters.records import MongoRecordStore
from catalog_api.adapters.storage import LocalFileStore
from catalog_api.dependencies import get_file_store, get_record_store
from catalog_api.errors import CatalogError, NotFoundError, StorageError, ValidationError
from catalog_api.schemas import Category, DeleteItemRequest, DeleteResult

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/delete-item", response_model=DeleteResult)
async def delete_item(
    body: DeleteItemRequest,
    file_store: LocalFileStore = Depends(get_file_store),
    record_store: MongoRecordStore = Depends(get_record_store),
) -> DeleteResult:
    """
    Delete an item's stored images, then its database record.

    Files are removed in the order given and the first failure aborts the
    request. Files removed before the failure stay removed and the record
    is kept.
    """
    data = body.data
    if not data.images:
        raise ValidationError("Image file is empty")
    category = Category.parse(data.type)

    for image in data.images:
        try:
            await run_in_threadpool(file_store.delete_file, category, image)
        except CatalogError as e:
            logger.error(f"Aborting delete of {data.product_id}: {e.message}")
            raise StorageError(f"Error deleting file: {image}") from e

    deleted_count = await run_in_threadpool(record_store.delete_by_id, category, data.product_id)
    if deleted_count == 0:
        raise NotFoundError("No item found with the provided ID")

    return DeleteResult(deleted_count=deleted_count)


@router.get("/get-products")
async def get_products(
    record_store: MongoRecordStore = Depends(get_record_store),
) -> List[Dict[str, Any]]:
    """Every product document, unfiltered and unpaginated."""
    return await run_in_threadpool(record_store.find_all, Category.PRODUCTS)
