from http import HTTPStatus
from unittest.mock import patch

import pytest

from core.models.errors import S3Error
from handlers.presign_images.handler import handler

PATH = "/api/images/presign"


def presign_body(*file_ids: str, size: int = 1024) -> dict:
    return {
        "images": [
            {"fileId": file_id, "fileType": "image/png", "fileSize": size}
            for file_id in file_ids
        ]
    }


@pytest.fixture
def aws_resources(auth_tokens, dynamodb_table, s3_bucket) -> None:
    """Handlers build their own record store and storage clients."""


class TestPresignHandler:
    def test_success(self, aws_resources, api_event, lambda_context, response_body) -> None:
        resp = handler(api_event("POST", PATH, body=presign_body("f1", "f2")), lambda_context)

        assert resp["statusCode"] == HTTPStatus.OK
        results = response_body(resp)["results"]
        assert [r["objectKey"] for r in results] == ["alice/f1", "alice/f2"]
        assert set(results[0]) == {
            "objectKey",
            "presignedUrl",
            "publicFileUrl",
            "imageId",
            "expiresAt",
        }
        assert results[0]["publicFileUrl"] == "https://cdn.example.com/alice/f1"

    def test_options_preflight(self, api_event, lambda_context) -> None:
        resp = handler(api_event("OPTIONS", PATH, token=None), lambda_context)

        assert resp["statusCode"] == HTTPStatus.NO_CONTENT
        assert resp["headers"]["Access-Control-Allow-Origin"] == "*"

    @pytest.mark.parametrize("token", [None, "wrong-token"])
    def test_unauthorized(self, aws_resources, api_event, lambda_context, response_body, token):
        resp = handler(api_event("POST", PATH, body=presign_body("f1"), token=token), lambda_context)

        assert resp["statusCode"] == HTTPStatus.UNAUTHORIZED
        assert "details" not in response_body(resp)

    def test_authentication_precedes_body_parsing(
        self, aws_resources, api_event, lambda_context
    ) -> None:
        resp = handler(api_event("POST", PATH, raw_body="{oops", token=None), lambda_context)

        assert resp["statusCode"] == HTTPStatus.UNAUTHORIZED

    def test_invalid_json(self, aws_resources, api_event, lambda_context, response_body) -> None:
        resp = handler(api_event("POST", PATH, raw_body="{oops"), lambda_context)

        assert resp["statusCode"] == HTTPStatus.BAD_REQUEST
        assert response_body(resp)["message"] == "Invalid JSON body"

    def test_field_errors(self, aws_resources, api_event, lambda_context, response_body) -> None:
        body = {"images": [{"fileId": "f1", "fileType": "image/png"}]}

        resp = handler(api_event("POST", PATH, body=body), lambda_context)

        assert resp["statusCode"] == HTTPStatus.BAD_REQUEST
        errors = response_body(resp)["details"]["errors"]
        assert errors == [{"field": "images.0.fileSize", "message": "This field is required"}]

    def test_batch_too_large(self, aws_resources, api_event, lambda_context, response_body):
        body = presign_body(*[f"f{i}" for i in range(6)])

        resp = handler(api_event("POST", PATH, body=body), lambda_context)

        assert resp["statusCode"] == HTTPStatus.BAD_REQUEST
        assert response_body(resp)["error"] == "BATCH_SIZE_EXCEEDED"

    def test_configured_batch_limit(
        self, aws_resources, api_event, lambda_context, monkeypatch
    ) -> None:
        monkeypatch.setenv("MAX_IMAGES", "2")

        resp = handler(api_event("POST", PATH, body=presign_body("a", "b", "c")), lambda_context)

        assert resp["statusCode"] == HTTPStatus.BAD_REQUEST

    def test_file_too_large(self, aws_resources, api_event, lambda_context, monkeypatch) -> None:
        monkeypatch.setenv("MAX_IMAGE_SIZE_KB", "1")

        resp = handler(api_event("POST", PATH, body=presign_body("f1", size=1025)), lambda_context)

        assert resp["statusCode"] == HTTPStatus.BAD_REQUEST

    def test_reused_file_id(self, aws_resources, api_event, lambda_context, response_body):
        handler(api_event("POST", PATH, body=presign_body("f1")), lambda_context)

        resp = handler(api_event("POST", PATH, body=presign_body("f1")), lambda_context)

        assert resp["statusCode"] == HTTPStatus.BAD_REQUEST
        assert response_body(resp)["error"] == "DUPLICATE_OBJECT_KEY"

    def test_storage_failure(self, aws_resources, api_event, lambda_context, response_body):
        with patch(
            "core.infrastructure.aws.s3_image_storage.S3ImageStorage.issue_write_grant",
            side_effect=S3Error(message="Unable to generate image access URL"),
        ):
            resp = handler(api_event("POST", PATH, body=presign_body("f1")), lambda_context)

        assert resp["statusCode"] == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response_body(resp)["error"] == "S3_ERROR"

    def test_misconfigured_tokens(self, api_event, lambda_context, monkeypatch) -> None:
        monkeypatch.setenv("AUTH_TOKENS", "missing-separator")

        resp = handler(api_event("POST", PATH, body=presign_body("f1")), lambda_context)

        assert resp["statusCode"] == HTTPStatus.INTERNAL_SERVER_ERROR
