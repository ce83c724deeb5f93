####################################
# --- Request/response schemas --- #
####################################

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from catalog_api.errors import ValidationError

# Collections provisioned in the database; only the Category values are routed to.
COLLECTION_NAMES = ("users", "services", "products", "articles", "qna")


class Category(str, Enum):
    """Content categories; each one owns an upload directory and a collection."""
    PRODUCTS = "products"
    ARTICLES = "articles"
    QNA = "qna"

    @classmethod
    def parse(cls, value) -> "Category":
        """Return the category named by `value` or raise `ValidationError`."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Unsupported category: {value}") from None


class InsertResult(BaseModel):
    """Response model for the upload endpoints."""
    acknowledged: bool = Field(default=True, description="Whether the database acknowledged the write.")
    inserted_id: str = Field(
        alias="insertedId",
        description="Id of the created item document.",
        json_schema_extra={"example": "665f1c2e8b3f4a0012ab34cd"},
    )
    images: List[str] = Field(
        description="Public URLs of the stored images, in upload order.",
        json_schema_extra={"example": ["http://localhost:9000/uploads/products/1717500000000-red-chair.png"]},
    )

    model_config = ConfigDict(populate_by_name=True)


class DeleteItemData(BaseModel):
    """Identifies an item and the files stored for it."""
    type: str = Field(description="Category of the item: products, articles or qna.")
    product_id: str = Field(alias="productId", description="Id of the item document.")
    images: Optional[List[str]] = Field(
        default=None,
        description="Stored filenames (or their public URLs) to remove from disk.",
    )

    model_config = ConfigDict(populate_by_name=True)


class DeleteItemRequest(BaseModel):
    """Request body for `POST /delete-item`."""
    data: DeleteItemData

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "data": {
                    "type": "products",
                    "productId": "665f1c2e8b3f4a0012ab34cd",
                    "images": ["1717500000000-red-chair.png"],
                }
            }
        }
    )


class DeleteResult(BaseModel):
    """Response model for `POST /delete-item`."""
    acknowledged: bool = True
    deleted_count: int = Field(alias="deletedCount")

    model_config = ConfigDict(populate_by_name=True)
