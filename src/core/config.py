"""Runtime configuration for the upload services.

Services receive an ``UploadSettings`` instance at construction instead of
reading the environment themselves, so tests can inject their own bounds.
Handlers build one per invocation with ``UploadSettings.from_env()``.
"""

import os
import re
from collections.abc import Mapping

from aws_lambda_powertools import Logger
from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.models.errors import InternalError
from core.utils.constants import (
    ALLOWED_MIME_TYPES,
    DEFAULT_MAX_IMAGE_SIZE_KB,
    DEFAULT_MAX_IMAGES,
    DEFAULT_READ_URL_TTL_SECONDS,
    DEFAULT_UPLOAD_URL_TTL_SECONDS,
    ENV_ALLOWED_MIME_TYPES,
    ENV_AUTH_TOKENS,
    ENV_IMAGE_PUBLIC_BASE_URL,
    ENV_MAX_IMAGE_SIZE_KB,
    ENV_MAX_IMAGES,
    ENV_READ_URL_TTL_SECONDS,
    ENV_SIGN_READ_URLS,
    ENV_UPLOAD_URL_TTL_SECONDS,
    MAX_BATCH_SIZE_LIMIT,
    USER_ID_PATTERN,
)

logger = Logger(UTC=True)

_TRUTHY = {"1", "true", "yes", "on"}


class UploadSettings(BaseModel):
    """Bounds and switches for the presign/confirm/delete/list services."""

    model_config = ConfigDict(frozen=True)

    max_batch_size: int = Field(DEFAULT_MAX_IMAGES, ge=1, le=MAX_BATCH_SIZE_LIMIT)
    max_image_size_bytes: int = Field(DEFAULT_MAX_IMAGE_SIZE_KB * 1024, ge=1)
    upload_url_ttl_seconds: int = Field(DEFAULT_UPLOAD_URL_TTL_SECONDS, ge=1, le=604800)
    read_url_ttl_seconds: int = Field(DEFAULT_READ_URL_TTL_SECONDS, ge=1, le=604800)
    public_base_url: str | None = None
    sign_read_urls: bool = False
    allowed_mime_types: frozenset[str] = ALLOWED_MIME_TYPES
    auth_tokens: dict[str, str] = Field(
        default_factory=dict,
        description="Bearer token -> caller id",
    )

    @field_validator("public_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str | None) -> str | None:
        if not value:
            return None
        return value.rstrip("/")

    @field_validator("auth_tokens")
    @classmethod
    def validate_caller_ids(cls, value: dict[str, str]) -> dict[str, str]:
        """Caller ids become the first segment of every storage key."""
        for token, caller_id in value.items():
            if not token:
                raise ValueError("Auth tokens must not be empty")
            if not re.match(USER_ID_PATTERN, caller_id):
                raise ValueError(f"Invalid caller id '{caller_id}' in auth token registry")
        return value

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "UploadSettings":
        """Build settings from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}

        if env.get(ENV_MAX_IMAGES):
            values["max_batch_size"] = int(env[ENV_MAX_IMAGES])

        if env.get(ENV_MAX_IMAGE_SIZE_KB):
            values["max_image_size_bytes"] = int(env[ENV_MAX_IMAGE_SIZE_KB]) * 1024

        if env.get(ENV_UPLOAD_URL_TTL_SECONDS):
            values["upload_url_ttl_seconds"] = int(env[ENV_UPLOAD_URL_TTL_SECONDS])

        if env.get(ENV_READ_URL_TTL_SECONDS):
            values["read_url_ttl_seconds"] = int(env[ENV_READ_URL_TTL_SECONDS])

        values["public_base_url"] = env.get(ENV_IMAGE_PUBLIC_BASE_URL)
        values["sign_read_urls"] = env.get(ENV_SIGN_READ_URLS, "").strip().lower() in _TRUTHY

        if env.get(ENV_ALLOWED_MIME_TYPES):
            values["allowed_mime_types"] = frozenset(
                m.strip().lower() for m in env[ENV_ALLOWED_MIME_TYPES].split(",") if m.strip()
            )

        values["auth_tokens"] = parse_auth_tokens(env.get(ENV_AUTH_TOKENS, ""))

        return cls.model_validate(values)


def load_settings() -> UploadSettings:
    """Build settings for a handler invocation.

    Raises:
        InternalError: If the environment holds invalid values
    """
    try:
        return UploadSettings.from_env()
    except ValueError as exc:
        logger.exception("Invalid upload service configuration")
        raise InternalError(message="Service is misconfigured") from exc


def parse_auth_tokens(raw: str) -> dict[str, str]:
    """Parse ``token:callerId`` pairs separated by commas.

    Example:
        "s3cr3t:alice,t0ken:bob" -> {"s3cr3t": "alice", "t0ken": "bob"}
    """
    tokens: dict[str, str] = {}

    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue

        token, sep, caller_id = pair.rpartition(":")
        if not sep or not token or not caller_id:
            raise ValueError("AUTH_TOKENS entries must look like 'token:callerId'")

        tokens[token.strip()] = caller_id.strip()

    return tokens
