"""Custom exception classes for the image upload service."""

from typing import Any

from core.utils.constants import (
    ERROR_CODE_DUPLICATE_OBJECT_KEY,
    ERROR_CODE_DYNAMODB,
    ERROR_CODE_IMAGES_NOT_OWNED,
    ERROR_CODE_INTERNAL_ERROR,
    ERROR_CODE_INVALID_STATUS_TRANSITION,
    ERROR_CODE_S3,
    ERROR_CODE_UNAUTHORIZED,
    ERROR_CODE_VALIDATION_FAILED,
)


class ImageServiceError(Exception):
    """
    Base exception for all image service errors.

    All custom errors must inherit from this class.
    Callers must explicitly provide a message and error code.
    Optional contextual information can be supplied via `details`.
    """

    message: str
    error_code: str
    details: dict[str, Any]

    def __init__(
        self,
        *,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}

        super().__init__(self.message)


class ValidationError(ImageServiceError):
    """Raised when a request is malformed or out of bounds."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_VALIDATION_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class DuplicateImageError(ValidationError):
    """Raised when a storage key is already assigned to another record."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_DUPLICATE_OBJECT_KEY,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class UnauthorizedError(ImageServiceError):
    """Raised when the presented credential is missing or invalid."""

    def __init__(
        self,
        *,
        message: str = "Unauthorized - invalid or missing authentication",
        error_code: str = ERROR_CODE_UNAUTHORIZED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class OwnershipError(ImageServiceError):
    """Raised when referenced images are missing, foreign, or in the wrong status."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_IMAGES_NOT_OWNED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class InvalidStatusTransitionError(ImageServiceError):
    """Raised when a lifecycle transition is not in the transition table."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_INVALID_STATUS_TRANSITION,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class S3Error(ImageServiceError):
    """Raised when an object storage operation fails."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_S3,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class DynamoDBError(ImageServiceError):
    """Raised when a record store operation fails."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_DYNAMODB,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class InternalError(ImageServiceError):
    """Raised for unexpected failures. Details are logged, never returned."""

    def __init__(
        self,
        *,
        message: str = "Internal server error",
        error_code: str = ERROR_CODE_INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )
