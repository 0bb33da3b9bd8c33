"""Shared image record models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr
from pydantic.alias_generators import to_camel

from core.models.lifecycle import ImageStatus
from core.utils.constants import RECORD_TYPE_IMAGE


class NewImageRecord(BaseModel):
    """Fields supplied by the caller when a pending record is created."""

    model_config = ConfigDict(frozen=True)

    user_id: StrictStr = Field(..., description="Owner user identifier")
    object_key: StrictStr = Field(..., description="Storage key ({userId}/{fileId})")
    file_url: StrictStr = Field(..., description="Public URL derived from the storage key")
    mime_type: StrictStr = Field(..., description="Declared MIME type")
    size_bytes: int = Field(..., gt=0, description="Declared size in bytes")


class ImageRecord(BaseModel):
    """Lifecycle record of one uploaded (or to-be-uploaded) image."""

    model_config = ConfigDict(frozen=True)

    image_id: StrictStr = Field(..., description="Unique image identifier (UUID)")
    user_id: StrictStr = Field(..., description="Owner user identifier")
    object_key: StrictStr = Field(..., description="Storage key of the object")
    file_url: StrictStr = Field(..., description="Public URL of the object")
    mime_type: StrictStr = Field(..., description="Declared MIME type")
    size_bytes: int = Field(..., description="Declared size in bytes")
    status: ImageStatus = Field(..., description="Lifecycle status")
    created_at: StrictStr = Field(..., description="ISO-8601 creation timestamp (UTC)")
    completed_at: StrictStr | None = Field(
        None, description="ISO-8601 timestamp of the last terminal transition (UTC)"
    )

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "ImageRecord":
        """Build a record from a DynamoDB item (numbers arrive as Decimal)."""
        return cls(
            image_id=item["image_id"],
            user_id=item["user_id"],
            object_key=item["object_key"],
            file_url=item["file_url"],
            mime_type=item["mime_type"],
            size_bytes=int(item["size_bytes"]),
            status=ImageStatus(item["status"]),
            created_at=item["created_at"],
            completed_at=item.get("completed_at"),
        )

    def to_item(self) -> dict[str, Any]:
        """Serialize to a DynamoDB item, omitting unset optional attributes."""
        item: dict[str, Any] = {
            "image_id": self.image_id,
            "record_type": RECORD_TYPE_IMAGE,
            "user_id": self.user_id,
            "object_key": self.object_key,
            "file_url": self.file_url,
            "mime_type": self.mime_type,
            "size_bytes": self.size_bytes,
            "status": self.status.value,
            "created_at": self.created_at,
        }
        if self.completed_at is not None:
            item["completed_at"] = self.completed_at
        return item


class OwnedObjectKey(BaseModel):
    """Identifier and storage key of a record owned by the caller."""

    model_config = ConfigDict(frozen=True)

    image_id: StrictStr
    object_key: StrictStr


class ImageSummary(BaseModel):
    """Public projection of a completed image returned by the listing API."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: StrictStr = Field(..., description="Image identifier")
    file_url: StrictStr = Field(..., description="Resolvable URL of the image")
    mime_type: StrictStr = Field(..., description="MIME type")
    size_bytes: int = Field(..., description="Size in bytes")
    status: ImageStatus = Field(..., description="Lifecycle status")
    created_at: StrictStr = Field(..., description="ISO-8601 creation timestamp (UTC)")

    @classmethod
    def from_record(cls, record: ImageRecord, *, file_url: str | None = None) -> "ImageSummary":
        return cls(
            id=record.image_id,
            file_url=file_url or record.file_url,
            mime_type=record.mime_type,
            size_bytes=record.size_bytes,
            status=record.status,
            created_at=record.created_at,
        )


class ListImagesResponse(BaseModel):
    """Response for listing completed images."""

    images: list[ImageSummary] = Field(..., description="Completed images, oldest first")
