"""DynamoDB-backed implementation of ImageRecordRepository."""

import uuid
from datetime import timedelta
from typing import Any

from aws_lambda_powertools import Logger
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from core.infrastructure.adapters.dynamodb_adapter import DynamoDBAdapter, DynamoDBAdapterProtocol
from core.models.errors import (
    DuplicateImageError,
    DynamoDBError,
    InvalidStatusTransitionError,
)
from core.models.image import ImageRecord, NewImageRecord, OwnedObjectKey
from core.models.lifecycle import (
    CONFIRMABLE_STATUSES,
    ImageStatus,
    can_transition,
    source_statuses,
)
from core.repositories.metadata_repository import ImageRecordRepository
from core.utils.constants import (
    ERROR_CODE_METADATA_CREATE_FAILED,
    ERROR_CODE_METADATA_FETCH_FAILED,
    ERROR_CODE_METADATA_LIST_FAILED,
    ERROR_CODE_METADATA_UPDATE_FAILED,
    MAX_TRANSACTION_ITEMS,
    MAX_TRANSITION_ATTEMPTS,
    OBJECT_KEY_GUARD_PREFIX,
    RECORD_TYPE_OBJECT_KEY_GUARD,
    USER_CREATED_INDEX,
)
from core.utils.time import utc_now, utc_now_iso

logger = Logger(UTC=True)

# DynamoDB BatchGetItem accepts at most 100 keys per request
_BATCH_GET_LIMIT = 100

# Cancellation reasons caused by another writer touching the same records
_CONTENTION_REASONS = frozenset({"ConditionalCheckFailed", "TransactionConflict"})


def object_key_guard_id(object_key: str) -> str:
    """Partition key of the item that reserves `object_key`."""
    return f"{OBJECT_KEY_GUARD_PREFIX}{object_key}"


def _unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


def _cancellation_codes(exc: ClientError) -> set[str]:
    """Return the per-action cancellation codes of a cancelled transaction."""
    error = exc.response.get("Error", {})
    reasons = exc.response.get("CancellationReasons") or []
    codes = {reason.get("Code") for reason in reasons if reason.get("Code")}

    # Some endpoints only list the reasons in the message
    if not codes:
        message = error.get("Message", "")
        codes = {code for code in _CONTENTION_REASONS if code in message}

    return codes - {"None"}


def _is_contention(exc: ClientError, reasons: frozenset[str] = _CONTENTION_REASONS) -> bool:
    code = exc.response.get("Error", {}).get("Code")

    if code == "ConditionalCheckFailedException":
        return True

    if code == "TransactionCanceledException":
        return bool(_cancellation_codes(exc) & reasons)

    return False


class DynamoDBMetadata(ImageRecordRepository):
    """DynamoDB-backed record store with transactional batch writes.

    All boto3 errors are caught and translated into
    domain-specific errors with stable semantics.

    Storage key uniqueness is enforced with one guard item per key
    (``objectkey#{key}``) written in the same transaction as the record.
    Guard items carry no ``user_id`` and therefore never appear in the
    ``user-created-index``.
    """

    def __init__(
        self,
        adapter: DynamoDBAdapterProtocol | None = None,
        *,
        max_attempts: int = MAX_TRANSITION_ATTEMPTS,
    ) -> None:
        """Initialize with DynamoDB adapter."""
        self._db: DynamoDBAdapterProtocol = adapter or DynamoDBAdapter()
        self._max_attempts = max(1, max_attempts)

    def create_batch(self, *, records: list[NewImageRecord]) -> list[ImageRecord]:
        """Create pending records and their key guards in one transaction.

        Raises:
            ValueError: If the batch exceeds the transaction limit
            DuplicateImageError: If a storage key is already assigned
            DynamoDBError: If creation fails
        """
        if not records:
            return []

        if len(records) * 2 > MAX_TRANSACTION_ITEMS:
            raise ValueError(
                f"Cannot create more than {MAX_TRANSACTION_ITEMS // 2} records in one batch"
            )

        object_keys = [record.object_key for record in records]
        if len(set(object_keys)) != len(object_keys):
            raise DuplicateImageError(
                message="Storage keys must be unique within a batch",
                details={"object_keys": object_keys},
            )

        now = utc_now()
        created = [
            ImageRecord(
                image_id=str(uuid.uuid4()),
                status=ImageStatus.PENDING,
                # Offset by position so records of one batch list in request order
                created_at=(now + timedelta(microseconds=index)).isoformat(
                    timespec="microseconds"
                ),
                completed_at=None,
                **record.model_dump(),
            )
            for index, record in enumerate(records)
        ]

        actions: list[dict[str, Any]] = []
        for record in created:
            actions.append(
                {
                    "Put": {
                        "Item": record.to_item(),
                        "ConditionExpression": "attribute_not_exists(image_id)",
                    }
                }
            )
            actions.append(
                {
                    "Put": {
                        "Item": {
                            "image_id": object_key_guard_id(record.object_key),
                            "record_type": RECORD_TYPE_OBJECT_KEY_GUARD,
                            "owner_image_id": record.image_id,
                            "created_at": record.created_at,
                        },
                        "ConditionExpression": "attribute_not_exists(image_id)",
                    }
                }
            )

        logger.debug(
            "Creating image records",
            extra={"count": len(created), "object_keys": object_keys},
        )

        try:
            self._db.transact_write(actions=actions)

        except ClientError as exc:
            logger.error(
                "DynamoDB batch create failed",
                extra={"object_keys": object_keys},
            )

            if _is_contention(exc, frozenset({"ConditionalCheckFailed"})):
                raise DuplicateImageError(
                    message="One or more storage keys are already in use",
                    details={"object_keys": object_keys},
                ) from exc

            raise DynamoDBError(
                message="Unable to save image records at this time",
                error_code=ERROR_CODE_METADATA_CREATE_FAILED,
                details={"object_keys": object_keys},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error creating image records")
            raise DynamoDBError(
                message="Unable to save image records at this time",
                error_code=ERROR_CODE_METADATA_CREATE_FAILED,
                details={"object_keys": object_keys},
            ) from exc

        logger.info(
            "Image records created",
            extra={"image_ids": [record.image_id for record in created]},
        )
        return created

    def transition_batch(
        self,
        *,
        image_ids: list[str],
        target_status: ImageStatus,
        user_id: str,
    ) -> list[ImageRecord]:
        target = ImageStatus(target_status)

        if target not in CONFIRMABLE_STATUSES:
            raise InvalidStatusTransitionError(
                message=f"Uploads cannot be confirmed as '{target.value}'",
                details={"to": target.value},
            )

        return self._transition(image_ids=image_ids, target=target, user_id=user_id)

    def soft_delete(self, *, image_ids: list[str], user_id: str) -> list[ImageRecord]:
        return self._transition(
            image_ids=image_ids,
            target=ImageStatus.DELETED,
            user_id=user_id,
        )

    def list_completed(self, *, user_id: str) -> list[ImageRecord]:
        """List completed records for a user, oldest first (all pages)."""
        logger.debug("Listing completed images", extra={"user_id": user_id})

        query_kwargs: dict[str, Any] = {
            "IndexName": USER_CREATED_INDEX,
            "KeyConditionExpression": Key("user_id").eq(user_id),
            "FilterExpression": Attr("status").eq(ImageStatus.COMPLETED.value),
            "ScanIndexForward": True,
        }

        items: list[dict[str, Any]] = []

        try:
            while True:
                response = self._db.query(**query_kwargs)
                page_items = response.get("Items", [])

                if not isinstance(page_items, list):
                    raise DynamoDBError(
                        message="Invalid query response from DynamoDB",
                        error_code=ERROR_CODE_METADATA_LIST_FAILED,
                        details={"user_id": user_id},
                    )

                items.extend(page_items)

                last_evaluated_key = response.get("LastEvaluatedKey")
                if not last_evaluated_key:
                    break
                query_kwargs["ExclusiveStartKey"] = last_evaluated_key

        except DynamoDBError:
            raise

        except ClientError as exc:
            logger.error("DynamoDB query failed", extra={"user_id": user_id})
            raise DynamoDBError(
                message="Unable to list images for this user",
                error_code=ERROR_CODE_METADATA_LIST_FAILED,
                details={"user_id": user_id},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error listing images")
            raise DynamoDBError(
                message="Unable to list images for this user",
                error_code=ERROR_CODE_METADATA_LIST_FAILED,
                details={"user_id": user_id},
            ) from exc

        records = self._to_records(items)
        logger.info(
            "Completed images listed",
            extra={"user_id": user_id, "count": len(records)},
        )
        return records

    def lookup_owned_keys(
        self,
        *,
        user_id: str,
        image_ids: list[str],
    ) -> list[OwnedObjectKey]:
        records = self.fetch_records(image_ids=image_ids)

        return [
            OwnedObjectKey(image_id=record.image_id, object_key=record.object_key)
            for record in records
            if record.user_id == user_id and record.status is ImageStatus.COMPLETED
        ]

    def fetch_records(self, *, image_ids: list[str]) -> list[ImageRecord]:
        ids = _unique(image_ids)
        if not ids:
            return []

        logger.debug("Fetching image records", extra={"image_ids": ids})

        items: list[dict[str, Any]] = []

        try:
            for start in range(0, len(ids), _BATCH_GET_LIMIT):
                chunk = ids[start : start + _BATCH_GET_LIMIT]
                items.extend(
                    self._db.batch_get_items(keys=[{"image_id": image_id} for image_id in chunk])
                )

        except ClientError as exc:
            logger.error("DynamoDB batch get failed", extra={"image_ids": ids})
            raise DynamoDBError(
                message="Unable to retrieve image records",
                error_code=ERROR_CODE_METADATA_FETCH_FAILED,
                details={"image_ids": ids},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error fetching image records")
            raise DynamoDBError(
                message="Unable to retrieve image records",
                error_code=ERROR_CODE_METADATA_FETCH_FAILED,
                details={"image_ids": ids},
            ) from exc

        by_id = {record.image_id: record for record in self._to_records(items)}
        return [by_id[image_id] for image_id in ids if image_id in by_id]

    def _transition(
        self,
        *,
        image_ids: list[str],
        target: ImageStatus,
        user_id: str,
    ) -> list[ImageRecord]:
        """Atomically move owned records that may legally reach `target`.

        The read/filter/write cycle repeats when another writer changes one of
        the candidates between the read and the conditional write.
        """
        ids = _unique(image_ids)
        if not ids:
            return []

        if len(ids) > MAX_TRANSACTION_ITEMS:
            raise ValueError(
                f"Cannot update more than {MAX_TRANSACTION_ITEMS} records in one batch"
            )

        sources = sorted(status.value for status in source_statuses(target))
        source_values = {f":from{index}": value for index, value in enumerate(sources)}

        for attempt in range(1, self._max_attempts + 1):
            candidates = [
                record
                for record in self.fetch_records(image_ids=ids)
                if record.user_id == user_id and can_transition(record.status, target)
            ]

            if not candidates:
                logger.info(
                    "No image records eligible for transition",
                    extra={"user_id": user_id, "target": target.value, "requested": len(ids)},
                )
                return []

            completed_at = utc_now_iso()
            actions = [
                {
                    "Update": {
                        "Key": {"image_id": record.image_id},
                        "UpdateExpression": "SET #status = :target, completed_at = :completed_at",
                        "ConditionExpression": (
                            f"user_id = :user_id AND #status IN ({', '.join(source_values)})"
                        ),
                        "ExpressionAttributeNames": {"#status": "status"},
                        "ExpressionAttributeValues": {
                            ":target": target.value,
                            ":completed_at": completed_at,
                            ":user_id": user_id,
                            **source_values,
                        },
                    }
                }
                for record in candidates
            ]

            try:
                self._db.transact_write(actions=actions)

            except ClientError as exc:
                if _is_contention(exc) and attempt < self._max_attempts:
                    logger.warning(
                        "Concurrent update detected, re-reading image records",
                        extra={"attempt": attempt, "target": target.value},
                    )
                    continue

                logger.error(
                    "DynamoDB status transition failed",
                    extra={"user_id": user_id, "target": target.value, "attempt": attempt},
                )
                raise DynamoDBError(
                    message="Unable to update image status at this time",
                    error_code=ERROR_CODE_METADATA_UPDATE_FAILED,
                    details={"image_ids": ids, "target": target.value},
                ) from exc

            except Exception as exc:
                logger.exception("Unexpected error updating image status")
                raise DynamoDBError(
                    message="Unable to update image status at this time",
                    error_code=ERROR_CODE_METADATA_UPDATE_FAILED,
                    details={"image_ids": ids, "target": target.value},
                ) from exc

            updated = [
                record.model_copy(update={"status": target, "completed_at": completed_at})
                for record in candidates
            ]
            logger.info(
                "Image status updated",
                extra={
                    "user_id": user_id,
                    "target": target.value,
                    "requested": len(ids),
                    "updated": len(updated),
                },
            )
            return updated

        # Unreachable: the last attempt either returns or raises
        raise DynamoDBError(
            message="Unable to update image status at this time",
            error_code=ERROR_CODE_METADATA_UPDATE_FAILED,
            details={"image_ids": ids, "target": target.value},
        )

    @staticmethod
    def _to_records(items: list[dict[str, Any]]) -> list[ImageRecord]:
        records: list[ImageRecord] = []

        for item in items:
            if item.get("record_type") == RECORD_TYPE_OBJECT_KEY_GUARD:
                continue
            try:
                records.append(ImageRecord.from_item(item))
            except Exception as exc:
                logger.warning(
                    "Skipping malformed image record",
                    extra={"image_id": item.get("image_id")},
                    exc_info=exc,
                )

        return records
