"""
Local disk storage for uploaded images.

Files live under `<root_dir>/<category>/` with generated names of the form
`<epoch-ms>-<sanitized-basename><ext>`. Public URLs point at the static
mount `/uploads` served by the app.
"""

import os
import re
import time
import logging
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Iterable, List, Optional, Union
from urllib.parse import unquote, urlparse

from catalog_api.config.settings import DEFAULT_ALLOWED_MIME_TYPES, DEFAULT_MAX_FILE_SIZE_BYTES
from catalog_api.errors import CatalogError, NotFoundError, StorageError, ValidationError
from catalog_api.schemas import Category
from catalog_api.utils.decorators import log_execution_time

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "uploads"
CHUNK_SIZE = 1024 * 1024
_WHITESPACE_RUN = re.compile(r"\s+")


def generate_filename(original_name: str, timestamp_ms: Optional[int] = None) -> str:
    """
    Build the on-disk name for an upload.

    The basename without its extension is lowercased with whitespace runs
    replaced by hyphens; the extension is kept verbatim.

    >>> generate_filename("My Photo.PNG", timestamp_ms=1700000000000)
    '1700000000000-my-photo.PNG'
    """
    basename = os.path.basename(original_name.replace("\\", "/"))
    stem, extension = os.path.splitext(basename)
    stem = _WHITESPACE_RUN.sub("-", stem).lower()
    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000
    return f"{timestamp_ms}-{stem}{extension}"


def public_url(base_url: str, category: Union[Category, str], filename: str) -> str:
    """Compose `<base_url>/uploads/<category>/<filename>`."""
    category = Category.parse(category)
    return f"{base_url.rstrip('/')}/{PUBLIC_PREFIX}/{category.value}/{filename}"


def filename_from_reference(reference: str) -> str:
    """Accept either a stored filename or its public URL and return the filename."""
    parsed = urlparse(reference)
    if parsed.scheme in ("http", "https"):
        return unquote(PurePosixPath(parsed.path).name)
    return reference


class LocalFileStore:
    """Stores category images on the local filesystem."""

    def __init__(
        self,
        root_dir: Union[str, Path],
        allowed_mime_types: Optional[Iterable[str]] = None,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE_BYTES,
    ):
        self.root_dir = Path(root_dir)
        self.allowed_mime_types = frozenset(allowed_mime_types or DEFAULT_ALLOWED_MIME_TYPES)
        self.max_file_size = max_file_size

    def category_dir(self, category: Union[Category, str]) -> Path:
        return self.root_dir / Category.parse(category).value

    def ensure_directory(self, category: Union[Category, str]) -> Path:
        """Create the category directory (and parents) if it does not exist."""
        directory = self.category_dir(category)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Could not create upload directory {directory}: {e}")
            raise StorageError(f"Could not create upload directory for {directory.name}") from e
        return directory

    def validate(self, content_type: Optional[str], size: Optional[int] = None) -> None:
        """Reject disallowed MIME types and declared sizes over the limit."""
        if content_type not in self.allowed_mime_types:
            allowed = ", ".join(sorted(self.allowed_mime_types))
            raise ValidationError(f"Invalid file type: {content_type}. Allowed types: {allowed}")
        if size is not None and size > self.max_file_size:
            raise ValidationError(f"File too large. Maximum size is {self.max_file_size} bytes")

    @log_execution_time
    def save_file(
        self,
        category: Union[Category, str],
        filename: str,
        content_type: Optional[str],
        stream: BinaryIO,
        size: Optional[int] = None,
    ) -> str:
        """
        Validate an incoming file and write it under the category directory.

        :param category: Category that owns the file.
        :param filename: Name the client sent; used to derive the stored name.
        :param content_type: Declared MIME type.
        :param stream: Binary file object positioned at the start of the content.
        :param size: Declared size in bytes, if known. The streamed byte count is
            enforced as well.
        :return: The generated filename.
        """
        self.validate(content_type, size)
        directory = self.ensure_directory(category)
        stored_name = generate_filename(filename)
        path = directory / stored_name

        written = 0
        try:
            with open(path, "xb") as out:
                while True:
                    chunk = stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_file_size:
                        raise ValidationError(f"File too large. Maximum size is {self.max_file_size} bytes")
                    out.write(chunk)
        except ValidationError:
            self._remove_partial(path)
            raise
        except FileExistsError as e:
            # the existing file belongs to another upload
            logger.error(f"Refusing to overwrite {path}")
            raise StorageError(f"File {stored_name} already exists") from e
        except OSError as e:
            self._remove_partial(path)
            logger.error(f"Failed to write {path}: {e}")
            raise StorageError(f"Failed to store file {filename}") from e

        logger.info(f"Stored {filename} as {path} ({written} bytes)")
        return stored_name

    @log_execution_time
    def delete_file(self, category: Union[Category, str], reference: str) -> None:
        """
        Remove a stored file.

        Raises `NotFoundError` if it does not exist and `StorageError` if the
        removal itself fails.
        """
        filename = filename_from_reference(reference)
        directory = self.category_dir(category)
        path = directory / filename
        if not filename or path.resolve().parent != directory.resolve():
            raise ValidationError(f"Invalid file reference: {reference}")

        if not path.is_file():
            raise NotFoundError(f"File not found: {filename}")
        try:
            path.unlink()
        except FileNotFoundError:
            raise NotFoundError(f"File not found: {filename}") from None
        except OSError as e:
            logger.error(f"Failed to delete {path}: {e}")
            raise StorageError(f"Failed to delete file {filename}") from e

        logger.info(f"Deleted {path}")

    def discard(self, category: Union[Category, str], filenames: List[str]) -> None:
        """Best-effort removal of files written by a request that did not complete."""
        for filename in filenames:
            try:
                self.delete_file(category, filename)
            except CatalogError as e:
                logger.warning(f"Could not discard {filename} from {category}: {e.message}")

    def _remove_partial(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove partial file {path}: {e}")
