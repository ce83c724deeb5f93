"""
Error taxonomy for the catalog API and the handlers that turn errors into responses.

Stores raise the exceptions below; the handlers registered in `create_app`
map them to HTTP status codes so route code never builds error responses itself.
"""

import logging

import pydantic
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CatalogError):
    """Bad input: MIME type, file size, empty image list, unknown category."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(CatalogError):
    """A stored file or a record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class StorageError(CatalogError):
    """Filesystem failure."""


class DatabaseError(CatalogError):
    """Connectivity, write or delete failure in the document database."""


async def handle_catalog_errors(request: Request, exc: CatalogError) -> JSONResponse:
    """Render a `CatalogError` as `{"detail": ...}` with its status code."""
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def handle_pydantic_validation_errors(
    request: Request, exc: pydantic.ValidationError | RequestValidationError
) -> JSONResponse:
    """Bad request bodies are client errors, reported as 400 with the error list."""
    errors = exc.errors()
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": [
                {
                    "msg": error["msg"],
                    "type": error.get("type"),
                    "loc": [str(part) for part in error.get("loc", [])],
                }
                for error in errors
            ]
        },
    )


async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that propagates out of a route without exposing the traceback."""
    try:
        return await call_next(request)
    except Exception:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )
