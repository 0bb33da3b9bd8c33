"""Business logic for recording upload outcomes."""

from aws_lambda_powertools import Logger

from core.config import UploadSettings
from core.infrastructure.aws.dynamodb_metadata import DynamoDBMetadata
from core.models.image import ImageRecord
from core.models.lifecycle import ImageStatus
from core.repositories.metadata_repository import ImageRecordRepository
from core.utils.validators import ensure_batch_bounds

from .models import UploadOutcome

logger = Logger(UTC=True)

# Completed outcomes are applied before failed ones
_CONFIRM_ORDER = (ImageStatus.COMPLETED, ImageStatus.FAILED)


class ConfirmService:
    """Application service for the confirm phase."""

    def __init__(
        self,
        settings: UploadSettings | None = None,
        *,
        records: ImageRecordRepository | None = None,
    ) -> None:
        self.settings = settings or UploadSettings.from_env()
        self.records = records or DynamoDBMetadata()

    def confirm_uploads(
        self,
        *,
        user_id: str,
        updates: list[UploadOutcome],
    ) -> list[ImageRecord]:
        """Move the caller's pending records to their reported outcome.

        Ids that are unknown, owned by someone else or no longer pending are
        skipped, so confirming twice is a no-op. The caller sees the skip
        only through the length of the returned list.

        Raises:
            ValidationError: If the batch is empty or too large
            DynamoDBError: If the record store rejects the update
        """
        ensure_batch_bounds(len(updates), maximum=self.settings.max_batch_size, field="updates")

        groups: dict[ImageStatus, list[str]] = {status: [] for status in _CONFIRM_ORDER}
        for update in updates:
            groups[update.target_status].append(update.image_id)

        updated: list[ImageRecord] = []
        for status in _CONFIRM_ORDER:
            image_ids = groups[status]
            if not image_ids:
                continue

            updated.extend(
                self.records.transition_batch(
                    image_ids=image_ids,
                    target_status=status,
                    user_id=user_id,
                )
            )

        if len(updated) != len(updates):
            logger.info(
                "Some uploads were not confirmed",
                extra={
                    "user_id": user_id,
                    "requested": len(updates),
                    "updated": len(updated),
                },
            )

        return updated
