"""Pydantic models for the presign request/response."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel

from core.utils.constants import FILE_ID_PATTERN


class PendingUpload(BaseModel):
    """One file the client intends to upload."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )

    file_id: str = Field(
        ...,
        pattern=FILE_ID_PATTERN,
        description="Client-chosen identifier, unique within the batch",
    )
    mime_type: str = Field(
        ...,
        alias="fileType",
        min_length=1,
        max_length=255,
        description="Declared MIME type",
    )
    size_bytes: StrictInt = Field(
        ...,
        alias="fileSize",
        gt=0,
        description="Declared size in bytes",
    )


class PresignImagesRequest(BaseModel):
    """Validation model for the presign request.

    Batch bounds depend on configuration and are checked by the service.
    """

    images: list[PendingUpload] = Field(..., description="Files to be uploaded")


class PresignedUpload(BaseModel):
    """Upload grant and record identifier for one requested file."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    object_key: str = Field(..., description="Storage key ({userId}/{fileId})")
    presigned_url: str = Field(..., description="Presigned PUT URL")
    public_file_url: str = Field(..., description="URL the object resolves to once uploaded")
    image_id: str = Field(..., description="Identifier of the pending record")
    expires_at: datetime = Field(..., description="Expiry of the presigned URL (UTC)")


class PresignImagesResponse(BaseModel):
    results: list[PresignedUpload]
