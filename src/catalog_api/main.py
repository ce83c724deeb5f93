from contextlib import asynccontextmanager
from pathlib import Path
from textwrap import dedent
import logging
from typing import Optional

import pydantic
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from fastapi.staticfiles import StaticFiles

from catalog_api.adapters.records import MongoRecordStore
from catalog_api.adapters.storage import PUBLIC_PREFIX, LocalFileStore
from catalog_api.config.settings import Settings, get_settings
from catalog_api.errors import (
    CatalogError,
    handle_broad_exceptions,
    handle_catalog_errors,
    handle_pydantic_validation_errors,
)
from catalog_api.routers.health import router as health_router
from catalog_api.routers.items import router as items_router
from catalog_api.routers.uploads import router as uploads_router

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    app.state.record_store.close()


def create_app(
    settings: Optional[Settings] = None,
    record_store: Optional[MongoRecordStore] = None,
    file_store: Optional[LocalFileStore] = None,
) -> FastAPI:
    """
    Create a FastAPI application.

    The file store and record store are created once here and shared by every
    request through `app.state`. Tests pass their own stores in.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Catalog Uploads API",
        summary="Store images for products, articles and Q&A entries",
        version="v1",
        description=dedent(
            """\
        Upload images with item metadata, delete items together with their
        files, and list products.

        | Endpoint | Notes |
        | --- | --- |
        | `POST /upload-single` | one image under `image`, always a product |
        | `POST /upload-multiple?type=` | up to 10 images under `images` |
        | `POST /delete-item` | removes files, then the record |
        | `GET /get-products` | all products |
        | `GET /uploads/{category}/{filename}` | stored image bytes |
        """
        ),
        docs_url="/docs",
        generate_unique_id_function=custom_generate_unique_id,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    file_store = file_store or LocalFileStore(
        root_dir=settings.upload_dir,
        allowed_mime_types=settings.allowed_mime_types,
        max_file_size=settings.max_file_size_bytes,
    )
    Path(file_store.root_dir).mkdir(parents=True, exist_ok=True)
    record_store = record_store or MongoRecordStore.from_settings(settings)

    app.state.settings = settings
    app.state.file_store = file_store
    app.state.record_store = record_store
    logger.info(f"Serving uploads from {file_store.root_dir}")

    app.include_router(uploads_router, tags=["uploads"])
    app.include_router(items_router, tags=["items"])
    app.include_router(health_router, tags=["health"])
    app.mount(
        f"/{PUBLIC_PREFIX}",
        StaticFiles(directory=file_store.root_dir, check_dir=False),
        name=PUBLIC_PREFIX,
    )

    app.add_exception_handler(CatalogError, handle_catalog_errors)
    app.add_exception_handler(RequestValidationError, handle_pydantic_validation_errors)
    app.add_exception_handler(pydantic.ValidationError, handle_pydantic_validation_errors)
    app.middleware("http")(handle_broad_exceptions)

    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    return f"{route.tags[0]}-{route.name}"


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
