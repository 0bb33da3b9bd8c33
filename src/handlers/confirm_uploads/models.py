"""Pydantic models for the upload confirmation request/response."""

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from core.models.lifecycle import ImageStatus


class UploadOutcome(BaseModel):
    """Client-reported result of one direct upload."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    image_id: str = Field(..., description="Identifier returned by presign (UUID)")
    status: Literal["completed", "failed"] = Field(..., description="Upload outcome")

    @field_validator("image_id")
    @classmethod
    def validate_image_id(cls, value: str) -> str:
        try:
            return str(UUID(value))
        except ValueError as exc:
            raise ValueError("imageId must be a valid UUID") from exc

    @property
    def target_status(self) -> ImageStatus:
        return ImageStatus(self.status)


class ConfirmUploadsRequest(BaseModel):
    """Validation model for the confirm request."""

    updates: list[UploadOutcome] = Field(..., description="Outcomes to record")


class ConfirmUploadsResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str = Field(..., description="Success message")
    updated_count: int = Field(..., description="Records that actually changed status")
