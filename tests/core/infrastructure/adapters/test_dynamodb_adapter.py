import pytest
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from core.infrastructure.adapters.dynamodb_adapter import DynamoDBAdapter
from core.utils.constants import ENV_IMAGE_METADATA_TABLE_NAME


class TestDynamoDBAdapter:
    def test_init_missing_table_env(self, monkeypatch):
        monkeypatch.delenv(ENV_IMAGE_METADATA_TABLE_NAME, raising=False)

        with pytest.raises(RuntimeError):
            DynamoDBAdapter()

    def test_transact_write(self, dynamodb_table, dynamodb_get_item):
        adapter = DynamoDBAdapter()

        adapter.transact_write(
            actions=[
                {"Put": {"Item": {"image_id": "a", "user_id": "john", "size_bytes": 10}}},
                {"Put": {"Item": {"image_id": "b", "user_id": "john"}}},
            ]
        )

        item = dynamodb_get_item("a")

        assert item["user_id"] == "john"
        assert item["size_bytes"] == 10
        assert dynamodb_get_item("b") is not None

    def test_transact_write_is_all_or_nothing(
        self, dynamodb_table, dynamodb_put_item, dynamodb_get_item
    ):
        adapter = DynamoDBAdapter()
        dynamodb_put_item({"image_id": "taken", "user_id": "john"})

        with pytest.raises(ClientError) as exc:
            adapter.transact_write(
                actions=[
                    {"Put": {"Item": {"image_id": "fresh", "user_id": "john"}}},
                    {
                        "Put": {
                            "Item": {"image_id": "taken", "user_id": "jane"},
                            "ConditionExpression": "attribute_not_exists(image_id)",
                        }
                    },
                ]
            )

        assert exc.value.response["Error"]["Code"] == "TransactionCanceledException"
        assert dynamodb_get_item("fresh") is None
        assert dynamodb_get_item("taken")["user_id"] == "john"

    def test_batch_get_items(self, dynamodb_table, dynamodb_put_item):
        adapter = DynamoDBAdapter()
        dynamodb_put_item({"image_id": "img_1", "user_id": "john"})
        dynamodb_put_item({"image_id": "img_2", "user_id": "john"})

        items = adapter.batch_get_items(
            keys=[{"image_id": "img_1"}, {"image_id": "img_2"}, {"image_id": "missing"}]
        )

        assert sorted(item["image_id"] for item in items) == ["img_1", "img_2"]

    def test_batch_get_items_empty(self, dynamodb_table):
        assert DynamoDBAdapter().batch_get_items(keys=[]) == []

    def test_query_returns_items(self, dynamodb_table, dynamodb_put_item):
        adapter = DynamoDBAdapter()
        dynamodb_put_item(
            {"image_id": "img_q", "user_id": "john", "created_at": "2024-01-01T00:00:00+00:00"}
        )

        response = adapter.query(
            IndexName="user-created-index",
            KeyConditionExpression=Key("user_id").eq("john"),
        )

        assert [item["image_id"] for item in response["Items"]] == ["img_q"]
