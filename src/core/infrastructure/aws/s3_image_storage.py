"""S3-backed implementation of ObjectGrantIssuer."""

from typing import Any

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from core.infrastructure.adapters.s3_adapter import S3Adapter, S3AdapterProtocol
from core.models.errors import S3Error
from core.models.storage import DeleteObjectsResult, ObjectDeleteError, ObjectGrant
from core.repositories.storage_repository import ObjectGrantIssuer
from core.utils.constants import (
    ERROR_CODE_IMAGE_DELETE_FAILED,
    ERROR_CODE_PRESIGNED_URL_FAILED,
)
from core.utils.time import expires_at, utc_now

logger = Logger(UTC=True)


class S3ImageStorage(ObjectGrantIssuer):
    """Grant issuer backed by Amazon S3."""

    def __init__(self, adapter: S3AdapterProtocol | None = None) -> None:
        """Create storage using the provided S3 adapter."""
        self._s3: S3AdapterProtocol = adapter or S3Adapter()

    def issue_write_grant(
        self,
        *,
        key: str,
        content_type: str,
        size_bytes: int,
        expires_in: int,
    ) -> ObjectGrant:
        """Generate a pre-signed PUT URL bound to the declared type and length."""
        logger.debug(
            "Generating pre-signed upload URL",
            extra={
                "key": key,
                "content_type": content_type,
                "size": size_bytes,
                "expires_in": expires_in,
            },
        )

        return self._presign(
            method="put_object",
            params={
                "Key": key,
                "ContentType": content_type,
                "ContentLength": size_bytes,
            },
            key=key,
            expires_in=expires_in,
        )

    def issue_read_grant(self, *, key: str, expires_in: int) -> ObjectGrant:
        """Generate a pre-signed GET URL for an object."""
        logger.debug(
            "Generating pre-signed download URL",
            extra={"key": key, "expires_in": expires_in},
        )

        return self._presign(
            method="get_object",
            params={"Key": key},
            key=key,
            expires_in=expires_in,
        )

    def delete_objects(self, *, keys: list[str]) -> DeleteObjectsResult:
        """Delete objects in one request, collecting per-key failures."""
        if not keys:
            return DeleteObjectsResult()

        logger.debug("Deleting objects", extra={"keys": keys})

        try:
            response = self._s3.delete_objects(keys=keys)

        except ClientError as exc:
            logger.error("S3 batch deletion failed", extra={"keys": keys})
            raise S3Error(
                message="Failed to delete images from storage",
                error_code=ERROR_CODE_IMAGE_DELETE_FAILED,
                details={"keys": keys},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error deleting objects")
            raise S3Error(
                message="Failed to delete images from storage",
                error_code=ERROR_CODE_IMAGE_DELETE_FAILED,
                details={"keys": keys},
            ) from exc

        result = DeleteObjectsResult(
            deleted_keys=[entry["Key"] for entry in response.get("Deleted", [])],
            errors=[
                ObjectDeleteError(
                    key=entry.get("Key", ""),
                    code=entry.get("Code", "Unknown"),
                    message=entry.get("Message", ""),
                )
                for entry in response.get("Errors", [])
            ],
        )

        if result.errors:
            logger.error(
                "S3 batch delete reported errors",
                extra={"errors": [err.model_dump() for err in result.errors]},
            )
        else:
            logger.info("Objects deleted successfully", extra={"count": len(result.deleted_keys)})

        return result

    def public_url(self, *, key: str, base_url: str | None = None) -> str:
        if base_url:
            return f"{base_url.rstrip('/')}/{key}"
        return self._s3.object_url(key=key)

    def _presign(
        self,
        *,
        method: str,
        params: dict[str, Any],
        key: str,
        expires_in: int,
    ) -> ObjectGrant:
        issued_at = utc_now()

        try:
            url: str = self._s3.generate_presigned_url(
                method=method,
                params=params,
                expires_in=expires_in,
            )

        except ClientError as exc:
            logger.error("Failed to generate pre-signed URL", extra={"key": key})
            raise S3Error(
                message="Unable to generate image access URL",
                error_code=ERROR_CODE_PRESIGNED_URL_FAILED,
                details={"key": key},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error generating pre-signed URL")
            raise S3Error(
                message="Unable to generate image access URL",
                error_code=ERROR_CODE_PRESIGNED_URL_FAILED,
                details={"key": key},
            ) from exc

        return ObjectGrant(url=url, expires_at=expires_at(expires_in, now=issued_at))
