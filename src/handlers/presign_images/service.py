"""Business logic for issuing upload grants.

Presigning is the first phase of an upload: the client declares the files it
is about to send, receives one presigned PUT URL per file, and a pending
record is created for each of them. Nothing is written to the record store
unless every grant was issued.
"""

import re
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from aws_lambda_powertools import Logger

from core.config import UploadSettings
from core.infrastructure.aws.dynamodb_metadata import DynamoDBMetadata
from core.infrastructure.aws.s3_image_storage import S3ImageStorage
from core.models.errors import S3Error, ValidationError
from core.models.image import NewImageRecord
from core.models.storage import ObjectGrant
from core.repositories.metadata_repository import ImageRecordRepository
from core.repositories.storage_repository import ObjectGrantIssuer
from core.utils.constants import (
    ERROR_CODE_FILE_SIZE_EXCEEDED,
    ERROR_CODE_PRESIGNED_URL_FAILED,
    ERROR_CODE_UNSUPPORTED_MIME_TYPE,
    ERROR_CODE_VALIDATION_FAILED,
    FILE_ID_PATTERN,
    GRANT_SIGNING_WORKERS,
    format_file_size,
)
from core.utils.validators import ensure_batch_bounds

from .models import PendingUpload, PresignedUpload

logger = Logger(UTC=True)


class PresignService:
    """Application service for the presign phase.

    This service orchestrates:
    - Batch, size, MIME type and file id validation
    - Concurrent issuing of write grants
    - Atomic creation of the pending records
    """

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

    @staticmethod
    def object_key(user_id: str, file_id: str) -> str:
        return f"{user_id}/{file_id}"

    def presign_uploads(
        self,
        *,
        user_id: str,
        uploads: list[PendingUpload],
    ) -> list[PresignedUpload]:
        """Issue write grants and create pending records for a batch.

        Args:
            user_id: Authenticated caller; first segment of every storage key
            uploads: Declared files, in the order results are returned

        Returns:
            One PresignedUpload per input item, in input order

        Raises:
            ValidationError: If the batch or any item is invalid
            DuplicateImageError: If a storage key is already in use
            S3Error: If any grant cannot be issued (no record is created)
            DynamoDBError: If the pending records cannot be created
        """
        self.validate_uploads(uploads)

        keys = [self.object_key(user_id, upload.file_id) for upload in uploads]
        logger.debug(
            "Issuing upload grants",
            extra={"user_id": user_id, "count": len(uploads)},
        )

        grants = self._issue_grants(keys, uploads)

        created = self.records.create_batch(
            records=[
                NewImageRecord(
                    user_id=user_id,
                    object_key=key,
                    file_url=self.grants.public_url(
                        key=key, base_url=self.settings.public_base_url
                    ),
                    mime_type=upload.mime_type,
                    size_bytes=upload.size_bytes,
                )
                for key, upload in zip(keys, uploads)
            ]
        )

        logger.info(
            "Upload grants issued",
            extra={"user_id": user_id, "image_ids": [record.image_id for record in created]},
        )

        return [
            PresignedUpload(
                object_key=record.object_key,
                presigned_url=grant.url,
                public_file_url=record.file_url,
                image_id=record.image_id,
                expires_at=grant.expires_at,
            )
            for record, grant in zip(created, grants)
        ]

    def validate_uploads(self, uploads: list[PendingUpload]) -> None:
        """Check the batch against the configured limits.

        Raises:
            ValidationError: With one entry per offending field in `details.errors`
        """
        ensure_batch_bounds(len(uploads), maximum=self.settings.max_batch_size, field="images")

        max_size = self.settings.max_image_size_bytes
        errors: list[dict[str, Any]] = []
        codes: set[str] = set()
        seen: set[str] = set()

        for index, upload in enumerate(uploads):
            prefix = f"images.{index}"

            if not re.fullmatch(FILE_ID_PATTERN, upload.file_id):
                errors.append({"field": f"{prefix}.fileId", "message": "Invalid file id"})
                codes.add(ERROR_CODE_VALIDATION_FAILED)
            elif upload.file_id in seen:
                errors.append(
                    {"field": f"{prefix}.fileId", "message": "Duplicate file id in batch"}
                )
                codes.add(ERROR_CODE_VALIDATION_FAILED)
            seen.add(upload.file_id)

            # Allow-list match is case-insensitive; the grant keeps the declared value
            if upload.mime_type.lower() not in self.settings.allowed_mime_types:
                errors.append(
                    {
                        "field": f"{prefix}.fileType",
                        "message": f"Unsupported file type '{upload.mime_type}'",
                    }
                )
                codes.add(ERROR_CODE_UNSUPPORTED_MIME_TYPE)

            if not 0 < upload.size_bytes <= max_size:
                errors.append(
                    {
                        "field": f"{prefix}.fileSize",
                        "message": f"File size must be between 1 byte and {format_file_size(max_size)}",
                    }
                )
                codes.add(ERROR_CODE_FILE_SIZE_EXCEEDED)

        if errors:
            logger.warning("Presign request rejected", extra={"errors": errors})
            raise ValidationError(
                message="Invalid upload request",
                error_code=codes.pop() if len(codes) == 1 else ERROR_CODE_VALIDATION_FAILED,
                details={"errors": errors},
            )

    def _issue_grants(
        self,
        keys: list[str],
        uploads: list[PendingUpload],
    ) -> list[ObjectGrant]:
        """Sign all write grants concurrently, preserving input order."""
        workers = min(GRANT_SIGNING_WORKERS, len(uploads))

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(
                    self.grants.issue_write_grant,
                    key=key,
                    content_type=upload.mime_type,
                    size_bytes=upload.size_bytes,
                    expires_in=self.settings.upload_url_ttl_seconds,
                )
                for key, upload in zip(keys, uploads)
            ]

            try:
                return [future.result() for future in futures]

            except S3Error:
                raise

            except Exception as exc:
                logger.exception("Unexpected error issuing upload grants")
                raise S3Error(
                    message="Unable to generate upload URLs",
                    error_code=ERROR_CODE_PRESIGNED_URL_FAILED,
                    details={"keys": keys},
                ) from exc
