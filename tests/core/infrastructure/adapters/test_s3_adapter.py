from urllib.parse import parse_qs, urlparse

import pytest

from core.infrastructure.adapters.s3_adapter import S3Adapter
from core.utils.constants import ENV_IMAGE_S3_BUCKET_NAME


class TestS3Adapter:
    def test_init_missing_bucket_env(self, monkeypatch):
        monkeypatch.delenv(ENV_IMAGE_S3_BUCKET_NAME, raising=False)

        with pytest.raises(RuntimeError):
            S3Adapter()

    def test_delete_objects_reports_deleted_keys(
        self,
        s3_bucket,
        s3_put_object,
        s3_object_exists,
    ):
        adapter = S3Adapter()
        s3_put_object("alice/f1", b"data", "image/png")
        s3_put_object("alice/f2", b"data", "image/png")

        response = adapter.delete_objects(keys=["alice/f1", "alice/f2"])

        assert sorted(entry["Key"] for entry in response["Deleted"]) == ["alice/f1", "alice/f2"]
        assert not s3_object_exists("alice/f1")
        assert not s3_object_exists("alice/f2")

    def test_generate_presigned_url_uses_sigv4(self, aws_mock):
        adapter = S3Adapter()

        url = adapter.generate_presigned_url(
            method="get_object",
            params={"Key": "alice/f1"},
            expires_in=300,
        )

        query = parse_qs(urlparse(url).query)
        assert query["X-Amz-Algorithm"] == ["AWS4-HMAC-SHA256"]
        assert query["X-Amz-Expires"] == ["300"]
        assert "alice/f1" in urlparse(url).path

    def test_object_url_default(self, monkeypatch):
        monkeypatch.setenv("AWS_REGION", "eu-west-1")
        adapter = S3Adapter()

        assert adapter.object_url(key="alice/f1") == (
            f"https://{adapter.bucket}.s3.eu-west-1.amazonaws.com/alice/f1"
        )

    def test_object_url_with_endpoint(self, monkeypatch):
        monkeypatch.setenv("AWS_ENDPOINT_URL", "http://localhost:4566/")
        adapter = S3Adapter()

        assert adapter.object_url(key="alice/f1") == (
            f"http://localhost:4566/{adapter.bucket}/alice/f1"
        )
