"""Global constants used throughout the application.

This module centralizes all magic numbers, string literals, and configuration
defaults that are used across multiple modules. Runtime bounds are carried by
``core.config.UploadSettings``; the values here are only its defaults.
"""

from typing import Final

# ============================================================================
# Error Codes
# ============================================================================


# Validation Errors
ERROR_CODE_VALIDATION_FAILED = "VALIDATION_FAILED"
ERROR_CODE_BATCH_SIZE_EXCEEDED = "BATCH_SIZE_EXCEEDED"
ERROR_CODE_UNSUPPORTED_MIME_TYPE = "UNSUPPORTED_MIME_TYPE"
ERROR_CODE_FILE_SIZE_EXCEEDED = "FILE_SIZE_EXCEEDED"
ERROR_CODE_DUPLICATE_OBJECT_KEY = "DUPLICATE_OBJECT_KEY"

# Auth / Ownership Errors
ERROR_CODE_UNAUTHORIZED = "UNAUTHORIZED"
ERROR_CODE_IMAGES_NOT_OWNED = "IMAGES_NOT_OWNED"
ERROR_CODE_INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"

# Storage Errors
ERROR_CODE_S3 = "S3_ERROR"
ERROR_CODE_PRESIGNED_URL_FAILED = "PRESIGNED_URL_FAILED"
ERROR_CODE_IMAGE_DELETE_FAILED = "IMAGE_DELETE_FAILED"

# Metadata / DynamoDB Errors
ERROR_CODE_DYNAMODB = "DYNAMODB_ERROR"
ERROR_CODE_METADATA_CREATE_FAILED = "METADATA_CREATE_FAILED"
ERROR_CODE_METADATA_FETCH_FAILED = "METADATA_FETCH_FAILED"
ERROR_CODE_METADATA_UPDATE_FAILED = "METADATA_UPDATE_FAILED"
ERROR_CODE_METADATA_LIST_FAILED = "METADATA_LIST_FAILED"

# Internal / Unexpected
ERROR_CODE_INTERNAL_ERROR = "INTERNAL_ERROR"


# ============================================================================
# Upload Constraints (defaults for UploadSettings)
# ============================================================================

DEFAULT_MAX_IMAGES = 5
DEFAULT_MAX_IMAGE_SIZE_KB = 1024
DEFAULT_UPLOAD_URL_TTL_SECONDS = 3600
DEFAULT_READ_URL_TTL_SECONDS = 300

# DynamoDB allows 100 actions per transaction; presign writes a record plus a
# key guard per upload.
MAX_TRANSACTION_ITEMS = 100
MAX_BATCH_SIZE_LIMIT = MAX_TRANSACTION_ITEMS // 2

# Bounded re-read/re-write cycles when a concurrent writer cancels a transaction
MAX_TRANSITION_ATTEMPTS = 3

# Worker threads used to sign write grants
GRANT_SIGNING_WORKERS = 4


MIME_TYPE_EXTENSION_MAP: Final[dict[str, tuple[str, ...]]] = {
    "image/jpeg": ("jpg", "jpeg"),
    "image/png": ("png",),
    "image/gif": ("gif",),
    "image/webp": ("webp",),
    "image/svg+xml": ("svg",),
}

ALLOWED_MIME_TYPES: Final[frozenset[str]] = frozenset(MIME_TYPE_EXTENSION_MAP.keys())


# ============================================================================
# Identifier Constraints
# ============================================================================

USER_ID_PATTERN = r"^[a-zA-Z0-9_-]+$"
FILE_ID_PATTERN = r"^[A-Za-z0-9_-]{1,128}$"

# Guard items enforce storage key uniqueness inside the records table
OBJECT_KEY_GUARD_PREFIX = "objectkey#"
RECORD_TYPE_IMAGE = "image"
RECORD_TYPE_OBJECT_KEY_GUARD = "object_key_guard"

USER_CREATED_INDEX = "user-created-index"

# ============================================================================
# API Gateway Configuration
# ============================================================================

CORS_ORIGIN = "*"
CORS_METHODS = "GET,POST,DELETE,OPTIONS"
CORS_HEADERS = "Content-Type,Authorization"
EXPOSE_HEADERS = "Content-Type,Content-Length"
DEFAULT_CONTENT_TYPE = "application/json"
AUTHORIZATION_HEADER = "authorization"
BEARER_SCHEME = "Bearer"

# ============================================================================
# Environment Variable Names
# ============================================================================

ENV_AWS_ENDPOINT_URL = "AWS_ENDPOINT_URL"
ENV_AWS_REGION = "AWS_REGION"
ENV_IMAGE_S3_BUCKET_NAME = "IMAGE_S3_BUCKET_NAME"
ENV_IMAGE_METADATA_TABLE_NAME = "IMAGE_METADATA_TABLE_NAME"
ENV_IMAGE_PUBLIC_BASE_URL = "IMAGE_PUBLIC_BASE_URL"
ENV_MAX_IMAGES = "MAX_IMAGES"
ENV_MAX_IMAGE_SIZE_KB = "MAX_IMAGE_SIZE_KB"
ENV_UPLOAD_URL_TTL_SECONDS = "UPLOAD_URL_EXPIRATION_SECONDS"
ENV_READ_URL_TTL_SECONDS = "READ_URL_EXPIRATION_SECONDS"
ENV_SIGN_READ_URLS = "SIGN_READ_URLS"
ENV_ALLOWED_MIME_TYPES = "ALLOWED_MIME_TYPES"
ENV_AUTH_TOKENS = "AUTH_TOKENS"


def format_file_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted file size string
    """
    size: float = float(size_bytes)

    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0

    return f"{size:.1f} TB"
