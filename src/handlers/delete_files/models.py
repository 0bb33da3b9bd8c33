"""Pydantic models for image deletion request/response."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class DeleteImagesRequest(BaseModel):
    """Validation model for the delete request."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    image_ids: list[str] = Field(..., description="Identifiers of completed images (UUIDs)")

    @field_validator("image_ids")
    @classmethod
    def validate_image_ids(cls, value: list[str]) -> list[str]:
        try:
            return [str(UUID(image_id)) for image_id in value]
        except ValueError as exc:
            raise ValueError("imageIds must contain valid UUIDs") from exc


class DeletedImage(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Image identifier")
    object_key: str = Field(..., description="Removed storage key")


class DeleteImagesResponse(BaseModel):
    """Response for a successful batch delete."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str = Field(..., description="Success message")
    deleted_count: int = Field(..., description="Number of images deleted")
    deleted_images: list[DeletedImage] = Field(..., description="Deleted images")
