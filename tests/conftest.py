"""
Pytest configuration and fixtures for image upload service tests.
Provides AWS mocking, DynamoDB and S3 fixtures with proper cleanup.
"""

import os
from collections.abc import Callable
from typing import Any

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("IMAGE_METADATA_TABLE_NAME", "image-metadata-test")
os.environ.setdefault("IMAGE_S3_BUCKET_NAME", "image-uploads-test")
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "true")
os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "image-upload-service")
os.environ.setdefault("POWERTOOLS_METRICS_NAMESPACE", "ImageUploadService")


@pytest.fixture(autouse=True)
def _clean_upload_env(monkeypatch):
    """Start every test from default upload settings."""
    for name in (
        "AWS_ENDPOINT_URL",
        "IMAGE_PUBLIC_BASE_URL",
        "MAX_IMAGES",
        "MAX_IMAGE_SIZE_KB",
        "UPLOAD_URL_EXPIRATION_SECONDS",
        "READ_URL_EXPIRATION_SECONDS",
        "SIGN_READ_URLS",
        "ALLOWED_MIME_TYPES",
        "AUTH_TOKENS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(scope="function")
def aws_mock():
    with mock_aws():
        yield


@pytest.fixture(scope="function")
def dynamodb_resource(aws_mock):
    return boto3.resource("dynamodb", region_name=os.getenv("AWS_REGION"))


def _create_dynamodb_table(dynamodb_resource):
    """Helper to create the image record table with its listing index."""
    table_name = os.getenv("IMAGE_METADATA_TABLE_NAME")

    return dynamodb_resource.create_table(
        TableName=table_name,
        BillingMode="PAY_PER_REQUEST",
        KeySchema=[{"AttributeName": "image_id", "KeyType": "HASH"}],
        AttributeDefinitions=[
            {"AttributeName": "image_id", "AttributeType": "S"},
            {"AttributeName": "user_id", "AttributeType": "S"},
            {"AttributeName": "created_at", "AttributeType": "S"},
        ],
        GlobalSecondaryIndexes=[
            {
                "IndexName": "user-created-index",
                "KeySchema": [
                    {"AttributeName": "user_id", "KeyType": "HASH"},
                    {"AttributeName": "created_at", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            },
        ],
    )


@pytest.fixture(scope="function")
def dynamodb_table(dynamodb_resource):
    """
    Create the DynamoDB table for testing.

    The table lives inside the per-test moto context and disappears with it.
    """
    table = _create_dynamodb_table(dynamodb_resource)
    table.wait_until_exists()

    yield table


@pytest.fixture
def dynamodb_put_item(dynamodb_table) -> Callable[[dict[str, Any]], dict[str, Any]]:
    """
    Helper to insert a single item into DynamoDB.

    Usage:
        item = dynamodb_put_item(image_item(image_id="...", status="completed"))
    """

    def _put(item: dict[str, Any]) -> dict[str, Any]:
        dynamodb_table.put_item(Item=item)
        return item

    return _put


@pytest.fixture
def dynamodb_get_item(dynamodb_table) -> Callable[[str], dict[str, Any] | None]:
    """
    Helper to get a single item from DynamoDB.

    Usage:
        item = dynamodb_get_item("0b9f...")
    """

    def _get(image_id: str) -> dict[str, Any] | None:
        response: dict[str, Any] = dynamodb_table.get_item(Key={"image_id": image_id})
        item: dict[str, Any] | None = response.get("Item")
        return item

    return _get


@pytest.fixture
def dynamodb_scan_images(dynamodb_table) -> Callable[[], list[dict[str, Any]]]:
    """Helper returning every image record (key guards excluded)."""

    def _scan() -> list[dict[str, Any]]:
        items = dynamodb_table.scan()["Items"]
        return [item for item in items if item.get("record_type") == "image"]

    return _scan


@pytest.fixture(scope="function")
def s3_client(aws_mock):
    """S3 client for bucket operations."""
    return boto3.client("s3", region_name=os.getenv("AWS_REGION"))


@pytest.fixture(scope="function")
def s3_bucket(s3_client):
    """
    Create the S3 bucket for testing.

    The bucket lives inside the per-test moto context and disappears with it.
    """
    bucket_name = os.getenv("IMAGE_S3_BUCKET_NAME")

    try:
        s3_client.create_bucket(Bucket=bucket_name)
    except ClientError as e:
        if e.response["Error"]["Code"] != "BucketAlreadyOwnedByYou":
            raise

    yield s3_client


@pytest.fixture
def s3_put_object(s3_bucket) -> Callable[..., dict[str, Any]]:
    """
    Helper to upload an object to S3.

    Usage:
        s3_put_object("alice/f1", b"bytes", "image/png")
    """

    def _put(key: str, body: bytes, content_type: str = "application/octet-stream"):
        bucket_name = os.getenv("IMAGE_S3_BUCKET_NAME")
        return s3_bucket.put_object(
            Bucket=bucket_name,
            Key=key,
            Body=body,
            ContentType=content_type,
        )

    return _put


@pytest.fixture
def s3_object_exists(s3_bucket) -> Callable[[str], bool]:
    """Helper reporting whether a key exists in the test bucket."""

    def _exists(key: str) -> bool:
        try:
            s3_bucket.head_object(Bucket=os.getenv("IMAGE_S3_BUCKET_NAME"), Key=key)
        except ClientError as e:
            if e.response["Error"]["Code"] in ("404", "NoSuchKey", "NotFound"):
                return False
            raise
        return True

    return _exists


def image_item(
    *,
    image_id: str,
    user_id: str = "alice",
    object_key: str | None = None,
    status: str = "completed",
    created_at: str = "2024-01-01T00:00:00.000000+00:00",
    mime_type: str = "image/png",
    size_bytes: int = 1024,
) -> dict[str, Any]:
    """Build a raw image record item as the record store writes it."""
    key = object_key or f"{user_id}/{image_id}"
    return {
        "image_id": image_id,
        "record_type": "image",
        "user_id": user_id,
        "object_key": key,
        "file_url": f"https://cdn.example.com/{key}",
        "mime_type": mime_type,
        "size_bytes": size_bytes,
        "status": status,
        "created_at": created_at,
    }


@pytest.fixture
def make_image_item() -> Callable[..., dict[str, Any]]:
    return image_item
