"""Business logic for listing a caller's completed images."""

from aws_lambda_powertools import Logger

from core.config import UploadSettings
from core.infrastructure.aws.dynamodb_metadata import DynamoDBMetadata
from core.infrastructure.aws.s3_image_storage import S3ImageStorage
from core.models.image import ImageRecord, ImageSummary
from core.repositories.metadata_repository import ImageRecordRepository
from core.repositories.storage_repository import ObjectGrantIssuer

logger = Logger(UTC=True)


class ListService:
    """Service responsible for projecting completed image records."""

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

    def list_files(self, *, user_id: str) -> list[ImageSummary]:
        """Return the caller's completed images, oldest first.

        With `sign_read_urls` enabled each `file_url` is a fresh presigned
        GET URL instead of the stored public URL.
        """
        records = self.records.list_completed(user_id=user_id)

        summaries = [
            ImageSummary.from_record(record, file_url=self._resolve_url(record))
            for record in records
        ]

        logger.debug(
            "Listed completed images",
            extra={"user_id": user_id, "count": len(summaries)},
        )
        return summaries

    def _resolve_url(self, record: ImageRecord) -> str:
        if not self.settings.sign_read_urls:
            return record.file_url

        grant = self.grants.issue_read_grant(
            key=record.object_key,
            expires_in=self.settings.read_url_ttl_seconds,
        )
        return grant.url
