import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import FormData

from catalog_api.adapters.records import MongoRecordStore
from catalog_api.adapters.storage import LocalFileStore, public_url
from catalog_api.config.settings import Settings
from catalog_api.dependencies import get_file_store, get_record_store, get_settings_from_app
from catalog_api.errors import CatalogError, ValidationError
from catalog_api.schemas import Category, InsertResult

logger = logging.getLogger(__name__)

router = APIRouter()


def form_document(form: FormData, file_field: str) -> Dict[str, Any]:
    """
    Build the item document from the text fields of a multipart form.

    Repeated fields become lists. A file under any field other than
    `file_field` is rejected.
    """
    document: Dict[str, Any] = {}
    for key, value in form.multi_items():
        if not isinstance(value, str):
            if key != file_field:
                raise ValidationError(f"Unexpected file field: {key}")
            continue
        if key not in document:
            document[key] = value
        elif isinstance(document[key], list):
            document[key].append(value)
        else:
            document[key] = [document[key], value]
    return document


async def store_uploads(
    file_store: LocalFileStore,
    category: Category,
    uploads: List[UploadFile],
) -> List[str]:
    """Save uploads in order; if one fails, the ones already saved are removed."""
    stored: List[str] = []
    try:
        for upload in uploads:
            stored_name = await run_in_threadpool(
                file_store.save_file,
                category,
                upload.filename,
                upload.content_type,
                upload.file,
                upload.size,
            )
            stored.append(stored_name)
    except CatalogError:
        if stored:
            await run_in_threadpool(file_store.discard, category, stored)
        raise
    return stored


async def insert_or_discard(
    record_store: MongoRecordStore,
    file_store: LocalFileStore,
    category: Category,
    document: Dict[str, Any],
    stored: List[str],
) -> str:
    """Insert the document; if the insert fails, the files it references are removed."""
    try:
        return await run_in_threadpool(record_store.insert, category, document)
    except Exception:
        logger.warning(f"Insert into {category.value} failed, discarding {len(stored)} stored file(s)")
        await run_in_threadpool(file_store.discard, category, stored)
        raise


@router.post("/upload-single", response_model=InsertResult)
async def upload_single(
    request: Request,
    image: Optional[UploadFile] = File(None, description="Image to store (JPEG or PNG)"),
    file_store: LocalFileStore = Depends(get_file_store),
    record_store: MongoRecordStore = Depends(get_record_store),
) -> InsertResult:
    """
    Store one image and create a product document referencing it.

    Text fields sent along with the image become fields of the document.
    The category is always `products`.
    """
    category = Category.PRODUCTS

    if image is None or not image.filename:
        raise ValidationError(f"No file uploaded for {category.value}.")
    document = form_document(await request.form(), file_field="image")

    stored = await store_uploads(file_store, category, [image])
    base_url = str(request.base_url)
    document["images"] = [public_url(base_url, category, name) for name in stored]

    inserted_id = await insert_or_discard(record_store, file_store, category, document, stored)
    return InsertResult(inserted_id=inserted_id, images=document["images"])


@router.post("/upload-multiple", response_model=InsertResult)
async def upload_multiple(
    request: Request,
    category_type: Optional[str] = Query(
        None, alias="type", description="Category of the item: products, articles or qna"
    ),
    images: Optional[List[UploadFile]] = File(None, description="Images to store, in display order"),
    settings: Settings = Depends(get_settings_from_app),
    file_store: LocalFileStore = Depends(get_file_store),
    record_store: MongoRecordStore = Depends(get_record_store),
) -> InsertResult:
    """
    Store several images and create one document in the category's collection.

    The document's `images` list keeps the order the files were received in.
    """
    category = Category.parse(category_type)

    uploads = [upload for upload in images or [] if upload.filename]
    if not uploads:
        raise ValidationError(f"No files uploaded for {category.value}.")
    if len(uploads) > settings.max_files_per_upload:
        raise ValidationError(
            f"Too many files. At most {settings.max_files_per_upload} images per upload"
        )
    document = form_document(await request.form(), file_field="images")

    stored = await store_uploads(file_store, category, uploads)
    base_url = str(request.base_url)
    document["images"] = [public_url(base_url, category, name) for name in stored]

    inserted_id = await insert_or_discard(record_store, file_store, category, document, stored)
    return InsertResult(inserted_id=inserted_id, images=document["images"])
