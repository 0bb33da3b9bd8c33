"""Abstract contract for object storage grants."""

from abc import ABC, abstractmethod

from core.models.storage import DeleteObjectsResult, ObjectGrant


class ObjectGrantIssuer(ABC):
    """Contract for issuing presigned grants and deleting stored objects.

    Implementations could be S3, R2, GCS, etc.
    Services depend on this interface, not the implementation.
    """

    @abstractmethod
    def issue_write_grant(
        self,
        *,
        key: str,
        content_type: str,
        size_bytes: int,
        expires_in: int,
    ) -> ObjectGrant:
        """Issue a grant for one PUT of exactly `content_type` and `size_bytes`.

        Args:
            key: Storage key the object will be written to
            content_type: MIME type the upload must declare
            size_bytes: Exact byte length the upload must have
            expires_in: Grant lifetime in seconds

        Raises:
            S3Error: If the grant cannot be issued
        """

    @abstractmethod
    def issue_read_grant(self, *, key: str, expires_in: int) -> ObjectGrant:
        """Issue a grant for reading one object.

        Raises:
            S3Error: If the grant cannot be issued
        """

    @abstractmethod
    def delete_objects(self, *, keys: list[str]) -> DeleteObjectsResult:
        """Delete objects in one batch, reporting failures per key.

        Raises:
            S3Error: If the request fails as a whole
        """

    @abstractmethod
    def public_url(self, *, key: str, base_url: str | None = None) -> str:
        """Return the public URL of an object.

        Args:
            key: Storage key
            base_url: Public base URL (CDN / custom domain); the store's own
                object URL is used when omitted
        """
