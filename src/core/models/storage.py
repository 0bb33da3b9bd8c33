"""Models returned by the object grant issuer."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ObjectGrant(BaseModel):
    """A presigned URL authorizing one storage operation until `expires_at`."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Presigned URL")
    expires_at: datetime = Field(..., description="UTC expiry of the grant")


class ObjectDeleteError(BaseModel):
    """Per-key failure reported by a batch object delete."""

    key: str
    code: str
    message: str


class DeleteObjectsResult(BaseModel):
    """Outcome of a batch object delete; partial failure is reported per key."""

    deleted_keys: list[str] = Field(default_factory=list)
    errors: list[ObjectDeleteError] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors
