"""Payloads for the generation endpoints and the generation log."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class DescriptionRequest(BaseModel):
    prompt: str | None = None


class DescriptionResponse(BaseModel):
    description: str


class GenerationLogRead(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    prompt: str
    image_url: str = Field(..., serialization_alias="imageUrl")
    model_used: str = Field(..., serialization_alias="modelUsed")
    image_size: int = Field(..., serialization_alias="imageSize")
    created_at: datetime | None = Field(None, serialization_alias="createdAt")

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime | None) -> str | None:
        if value is None:
            return None
        return value.isoformat()
