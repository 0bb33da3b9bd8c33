import json
from collections.abc import Callable
from types import SimpleNamespace
from typing import Any

import pytest

from core.config import UploadSettings
from core.infrastructure.aws.dynamodb_metadata import DynamoDBMetadata
from core.infrastructure.aws.s3_image_storage import S3ImageStorage

ALICE_TOKEN = "alice-token"
BOB_TOKEN = "bob-token"


@pytest.fixture
def lambda_context(monkeypatch):
    context = SimpleNamespace(
        aws_request_id="test-request-id",
        function_name="test-function",
        memory_limit_in_mb=256,
        invoked_function_arn="arn:aws:lambda:us-east-1:000000000000:function:test",
        log_group_name="/aws/lambda/test-function",
        log_stream_name="2024/01/01/[$LATEST]test",
    )

    monkeypatch.setattr(
        "aws_lambda_powertools.utilities.typing.LambdaContext",
        lambda: context,
        raising=False,
    )

    return context


@pytest.fixture
def auth_tokens(monkeypatch) -> None:
    """Register bearer tokens for alice and bob."""
    monkeypatch.setenv("AUTH_TOKENS", f"{ALICE_TOKEN}:alice,{BOB_TOKEN}:bob")
    monkeypatch.setenv("IMAGE_PUBLIC_BASE_URL", "https://cdn.example.com/")


@pytest.fixture
def settings() -> UploadSettings:
    return UploadSettings(
        max_batch_size=5,
        max_image_size_bytes=1024 * 1024,
        public_base_url="https://cdn.example.com",
        auth_tokens={ALICE_TOKEN: "alice", BOB_TOKEN: "bob"},
    )


@pytest.fixture
def records(dynamodb_table) -> DynamoDBMetadata:
    return DynamoDBMetadata()


@pytest.fixture
def grants(s3_bucket) -> S3ImageStorage:
    return S3ImageStorage()


@pytest.fixture
def api_event() -> Callable[..., dict[str, Any]]:
    """
    Build an API Gateway proxy event.

    Usage:
        event = api_event("POST", "/api/images/presign", body={...}, token=ALICE_TOKEN)
    """

    def _event(
        method: str,
        path: str,
        *,
        body: Any = None,
        token: str | None = ALICE_TOKEN,
        raw_body: str | None = None,
    ) -> dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        if token is not None:
            headers["Authorization"] = f"Bearer {token}"

        return {
            "httpMethod": method,
            "path": path,
            "headers": headers,
            "body": raw_body if raw_body is not None else (
                json.dumps(body) if body is not None else None
            ),
        }

    return _event


def parse_body(response: dict[str, Any]) -> dict[str, Any]:
    return json.loads(response["body"]) if response.get("body") else {}


@pytest.fixture
def response_body() -> Callable[[dict[str, Any]], dict[str, Any]]:
    return parse_body
