"""Pydantic models describing product fulfillment payloads.

Products keep the key names of the original sheet-backed documents
("SKU", "Wax Image URL", ...) on the wire.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class ProductRead(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    sku: int = Field(..., serialization_alias="SKU")
    status: str = Field(..., serialization_alias="Status")
    category: str | None = Field(None, serialization_alias="Category")
    pre_image_url: str | None = Field(None, serialization_alias="Pre-Image URL")
    wax_image_url: str | None = Field(None, serialization_alias="Wax Image URL")
    cast_image_url: str | None = Field(None, serialization_alias="Cast Image URL")
    final_image_url: str | None = Field(None, serialization_alias="Final Image URL")
    wax_description: str | None = Field(None, serialization_alias="Wax Description")
    cast_description: str | None = Field(None, serialization_alias="Cast Description")
    final_description: str | None = Field(None, serialization_alias="Final Description")
    created_at: datetime | None = Field(None, serialization_alias="Created at")

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime | None) -> str | None:
        """Convert datetime to ISO format string."""
        if value is None:
            return None
        return value.isoformat()


class ImageSaveRequest(BaseModel):
    """Body of POST /api/update-product-image.

    Fields are optional here so missing values surface as a 400 with the
    same message the client already knows.
    """

    sku: int | None = None
    imageType: str | None = None
    imageDataUrl: str | None = None


class DescriptionSaveRequest(BaseModel):
    sku: int | None = None
    descType: str | None = None
    description: str | None = None


class ProductUpdateResponse(BaseModel):
    message: str
    product: ProductRead
