"""Abstract contract for image record persistence."""

from abc import ABC, abstractmethod

from core.models.image import ImageRecord, NewImageRecord, OwnedObjectKey
from core.models.lifecycle import ImageStatus


class ImageRecordRepository(ABC):
    """Contract for storing image lifecycle records.

    Implementations could be DynamoDB, PostgreSQL, MongoDB, etc.
    Every multi-record write must be atomic: either all matching records
    change or none do. Records are never hard-deleted.
    """

    @abstractmethod
    def create_batch(self, *, records: list[NewImageRecord]) -> list[ImageRecord]:
        """Create pending records in one atomic batch.

        Args:
            records: Records to create; storage keys must be unused

        Returns:
            Created records with generated identifiers, in input order

        Raises:
            DuplicateImageError: If any storage key is already assigned
            DynamoDBError: If creation fails for other reasons
        """

    @abstractmethod
    def transition_batch(
        self,
        *,
        image_ids: list[str],
        target_status: ImageStatus,
        user_id: str,
    ) -> list[ImageRecord]:
        """Move owned pending records to `completed` or `failed`.

        Ids not found, not owned by `user_id`, or not in a status that may
        reach `target_status` are dropped without error. Callers compare the
        returned count against the requested count.

        Returns:
            Records actually updated

        Raises:
            InvalidStatusTransitionError: If `target_status` is not confirmable
            DynamoDBError: If the update fails
        """

    @abstractmethod
    def list_completed(self, *, user_id: str) -> list[ImageRecord]:
        """List completed records of a user, oldest first.

        Raises:
            DynamoDBError: If the query fails
        """

    @abstractmethod
    def lookup_owned_keys(
        self,
        *,
        user_id: str,
        image_ids: list[str],
    ) -> list[OwnedObjectKey]:
        """Return storage keys of owned records in `completed` status.

        Raises:
            DynamoDBError: If the lookup fails
        """

    @abstractmethod
    def soft_delete(self, *, image_ids: list[str], user_id: str) -> list[ImageRecord]:
        """Move owned completed records to `deleted`.

        Returns:
            Records actually updated

        Raises:
            DynamoDBError: If the update fails
        """

    @abstractmethod
    def fetch_records(self, *, image_ids: list[str]) -> list[ImageRecord]:
        """Fetch records by id regardless of owner or status.

        Missing ids are omitted; order follows `image_ids`.

        Raises:
            DynamoDBError: If the fetch fails
        """
