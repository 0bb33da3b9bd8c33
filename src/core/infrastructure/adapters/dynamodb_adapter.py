"""Thin DynamoDB adapter wrapping boto3 table and transaction operations."""

import os
from typing import Any, Protocol, cast

import boto3

from core.utils.constants import (
    ENV_AWS_ENDPOINT_URL,
    ENV_AWS_REGION,
    ENV_IMAGE_METADATA_TABLE_NAME,
)


class DynamoDBTable(Protocol):
    """Minimal DynamoDB Table protocol."""

    name: str

    def query(self, **kwargs: Any) -> dict[str, Any]: ...


class DynamoDBAdapterProtocol(Protocol):
    """Minimal DynamoDB adapter protocol (repository-facing)."""

    def batch_get_items(self, *, keys: list[dict[str, Any]]) -> list[dict[str, Any]]: ...
    def query(self, **kwargs: Any) -> dict[str, Any]: ...
    def transact_write(self, *, actions: list[dict[str, Any]]) -> dict[str, Any]: ...


class DynamoDBAdapter:
    """Low-level DynamoDB operations (mechanical, no error handling).

    This adapter:
    - Wraps boto3 DynamoDB resource and its low-level client
    - Does NOT handle errors (lets them bubble up)
    - Domain implementations catch and translate errors
    """

    def __init__(self) -> None:
        """Initialize DynamoDB table from environment."""
        table_name = os.getenv(ENV_IMAGE_METADATA_TABLE_NAME)
        if not table_name:
            raise RuntimeError(
                f"{ENV_IMAGE_METADATA_TABLE_NAME} environment variable is not set"
            )

        self._dynamodb = boto3.resource(
            "dynamodb",
            endpoint_url=os.getenv(ENV_AWS_ENDPOINT_URL),
            region_name=os.getenv(ENV_AWS_REGION),
        )
        self._table_name = table_name

        self.table: DynamoDBTable = cast(
            DynamoDBTable,
            self._dynamodb.Table(table_name),
        )

    def batch_get_items(self, *, keys: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Retrieve up to 100 items by key, following unprocessed keys.

        Raises boto3 exceptions - caught by domain implementation.
        """
        if not keys:
            return []

        items: list[dict[str, Any]] = []
        request: dict[str, Any] = {
            self._table_name: {"Keys": keys, "ConsistentRead": True},
        }

        while request:
            response = self._dynamodb.batch_get_item(RequestItems=request)
            items.extend(response.get("Responses", {}).get(self._table_name, []))
            request = response.get("UnprocessedKeys") or {}

        return items

    def query(self, **kwargs: Any) -> dict[str, Any]:
        """Execute DynamoDB query.

        Raises boto3 exceptions - caught by domain implementation.
        """
        return self.table.query(**kwargs)

    def transact_write(self, *, actions: list[dict[str, Any]]) -> dict[str, Any]:
        """Execute Put/Update/ConditionCheck actions as one transaction.

        Actions use plain Python values, e.g.
            {"Put": {"Item": {...}, "ConditionExpression": "..."}}
        The resource client serializes them; the table name is filled in here.

        Raises boto3 exceptions - caught by domain implementation.
        """
        transact_items = [
            {kind: {**body, "TableName": self._table_name}}
            for action in actions
            for kind, body in action.items()
        ]
        client = self._dynamodb.meta.client
        return client.transact_write_items(TransactItems=transact_items)

