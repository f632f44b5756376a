"""
DynamoDB repository: the raw store calls behind DynamoDBService.

Every boto3 failure, serialization errors included, is re-raised as
StoreUnavailable so the service layer has one exception type to turn into
sentinels and telemetry.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from utils.error_handling import StoreUnavailable

MAX_BATCH_WRITE_ITEMS = 25

# TypeError/ValueError come from boto3's TypeSerializer (floats, empty sets).
STORE_ERRORS = (ClientError, BotoCoreError, TypeError, ValueError)


def _ok(response: Dict[str, Any]) -> bool:
    return response.get("ResponseMetadata", {}).get("HTTPStatusCode") == 200


def build_scan_filter(filter: Dict[str, Any], operator: str = "AND") -> Dict[str, Any]:
    """Build `contains()` filter parameters joined by the logical operator."""
    return {
        "FilterExpression": f" {operator} ".join(
            f"contains(#{name}, :{name})" for name in filter
        ),
        "ExpressionAttributeNames": {f"#{name}": name for name in filter},
        "ExpressionAttributeValues": {f":{name}": value for name, value in filter.items()},
    }


class DynamoDbRepository:
    """Provide the store primitives the write-coalescing client is built on."""

    def __init__(self, region: Optional[str] = None, resource=None):
        self.resource = resource or boto3.resource("dynamodb", region_name=region)
        self.client = self.resource.meta.client
        self._tables: Dict[str, Any] = {}

    def table(self, table_name: str):
        if table_name not in self._tables:
            self._tables[table_name] = self.resource.Table(table_name)
        return self._tables[table_name]

    def describe_key_schema(self, table_name: str) -> List[str]:
        """Key attribute names in schema order (partition key first)."""
        try:
            resp = self.client.describe_table(TableName=table_name)
        except STORE_ERRORS as exc:
            raise StoreUnavailable(table_name, "describe", exc) from exc
        key_schema = resp.get("Table", {}).get("KeySchema", [])
        ordered = sorted(key_schema, key=lambda key: key.get("KeyType") != "HASH")
        return [key["AttributeName"] for key in ordered if key.get("AttributeName")]

    def get_item(self, table_name: str, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            resp = self.table(table_name).get_item(Key=key)
        except STORE_ERRORS as exc:
            raise StoreUnavailable(table_name, "get", exc) from exc
        return resp.get("Item")

    def put_item(self, table_name: str, item: Dict[str, Any]) -> bool:
        try:
            return _ok(self.table(table_name).put_item(Item=item))
        except STORE_ERRORS as exc:
            raise StoreUnavailable(table_name, "put", exc) from exc

    def delete_item(self, table_name: str, key: Dict[str, Any]) -> bool:
        try:
            return _ok(self.table(table_name).delete_item(Key=key))
        except STORE_ERRORS as exc:
            raise StoreUnavailable(table_name, "delete", exc) from exc

    def batch_write(
        self, table_name: str, requests: Sequence[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        """
        Send one BatchWriteItem call.

        Returns the requests DynamoDB reported as unprocessed (throttled); the
        caller decides what to do with them.
        """
        if len(requests) > MAX_BATCH_WRITE_ITEMS:
            raise ValueError(
                f"batch_write accepts at most {MAX_BATCH_WRITE_ITEMS} requests, got {len(requests)}"
            )
        if not requests:
            return []
        try:
            resp = self.client.batch_write_item(RequestItems={table_name: list(requests)})
        except STORE_ERRORS as exc:
            raise StoreUnavailable(table_name, "batchWrite", exc) from exc
        return resp.get("UnprocessedItems", {}).get(table_name, [])

    def scan_page(
        self,
        table_name: str,
        filter: Optional[Dict[str, Any]] = None,
        operator: str = "AND",
        start_key: Optional[Dict[str, Any]] = None,
    ) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """Fetch one scan page; returns (items, LastEvaluatedKey)."""
        params: Dict[str, Any] = {}
        if start_key:
            params["ExclusiveStartKey"] = start_key
        if filter:
            params.update(build_scan_filter(filter, operator))
        try:
            resp = self.table(table_name).scan(**params)
        except STORE_ERRORS as exc:
            raise StoreUnavailable(table_name, "scan", exc) from exc
        return resp.get("Items", []), resp.get("LastEvaluatedKey")
