"""Business logic for image deletion operations.

Deletion removes the stored objects first and soft-deletes the records only
when storage reported no failure, so a record is never marked deleted while
its object may still exist.
"""

from aws_lambda_powertools import Logger

from core.config import UploadSettings
from core.infrastructure.aws.dynamodb_metadata import DynamoDBMetadata
from core.infrastructure.aws.s3_image_storage import S3ImageStorage
from core.models.errors import OwnershipError, S3Error
from core.models.image import OwnedObjectKey
from core.repositories.metadata_repository import ImageRecordRepository
from core.repositories.storage_repository import ObjectGrantIssuer
from core.utils.constants import ERROR_CODE_IMAGE_DELETE_FAILED
from core.utils.validators import ensure_batch_bounds

logger = Logger(UTC=True)


class DeleteService:
    """Application service for deleting completed images."""

    def __init__(
        self,
        settings: UploadSettings | None = None,
        *,
        records: ImageRecordRepository | None = None,
        grants: ObjectGrantIssuer | None = None,
    ) -> None:
        self.settings = settings or UploadSettings.from_env()
        self.records = records or DynamoDBMetadata()
        self.grants = grants or S3ImageStorage()

    def delete_images(self, *, user_id: str, image_ids: list[str]) -> list[OwnedObjectKey]:
        """Delete the caller's completed images.

        The flow is:
        1. Look up the storage keys of owned, completed records
        2. Reject the whole request if any id is not among them
        3. Delete every object in one storage call
        4. Soft-delete the records if storage reported no failure

        Args:
            user_id: Authenticated caller
            image_ids: Images to delete; duplicates are collapsed

        Returns:
            Identifier and storage key of every deleted image

        Raises:
            ValidationError: If the batch is empty or too large
            OwnershipError: If any image is missing, foreign or not completed
            S3Error: If storage fails to delete any object (no record changes)
            DynamoDBError: If the record store fails
        """
        ids = list(dict.fromkeys(image_ids))
        ensure_batch_bounds(len(ids), maximum=self.settings.max_batch_size, field="imageIds")

        owned = self.records.lookup_owned_keys(user_id=user_id, image_ids=ids)

        if not owned:
            logger.warning(
                "Delete requested for images not owned by caller",
                extra={"user_id": user_id, "image_ids": ids},
            )
            raise OwnershipError(
                message="No images found or images do not belong to user",
                details={"missingImageIds": ids},
            )

        found = {entry.image_id for entry in owned}
        missing = [image_id for image_id in ids if image_id not in found]

        if missing:
            logger.warning(
                "Delete requested for some images not owned by caller",
                extra={"user_id": user_id, "missing": missing},
            )
            raise OwnershipError(
                message="Some images not found or do not belong to user",
                details={"missingImageIds": missing},
            )

        result = self.grants.delete_objects(keys=[entry.object_key for entry in owned])

        if not result.ok:
            raise S3Error(
                message="Failed to delete some images from storage",
                error_code=ERROR_CODE_IMAGE_DELETE_FAILED,
                details={"errors": [error.model_dump() for error in result.errors]},
            )

        updated = self.records.soft_delete(image_ids=ids, user_id=user_id)
        deleted = [
            OwnedObjectKey(image_id=record.image_id, object_key=record.object_key)
            for record in updated
        ]

        if len(deleted) < len(owned):
            logger.info(
                "Fewer image records deleted than requested",
                extra={"user_id": user_id, "requested": len(owned), "deleted": len(deleted)},
            )

        logger.info(
            "Images deleted",
            extra={"user_id": user_id, "count": len(deleted)},
        )
        return deleted
