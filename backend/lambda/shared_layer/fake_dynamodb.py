"""fake_dynamodb.py — In-memory stand-in for the DynamoDB low-level client.

Implements the subset used by LeadStore (put_item, get_item, query,
delete_item) over attribute-value items, with optional query paging and
per-operation failure injection. Test-only.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional, Tuple

from botocore.exceptions import ClientError

HASH_KEY = "tenantId"
RANGE_KEY = "recordId"


def _key_of(item: Dict[str, Any]) -> Tuple[str, str]:
    return item[HASH_KEY]["S"], item[RANGE_KEY]["S"]


def throughput_error(operation: str) -> ClientError:
    return ClientError(
        {
            "Error": {
                "Code": "ProvisionedThroughputExceededException",
                "Message": "Rate of requests exceeds the allowed throughput.",
            }
        },
        operation,
    )


class FakeDynamoDB:
    def __init__(self, page_size: Optional[int] = None):
        self.tables: Dict[str, Dict[Tuple[str, str], Dict[str, Any]]] = {}
        self.page_size = page_size
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self._failures: Dict[str, List[Exception]] = {}

    # -- test controls -----------------------------------------------------

    def fail_next(self, operation: str, exc: Optional[Exception] = None, *, after: int = 0) -> None:
        """Fail the (after+1)-th upcoming call to ``operation``."""
        queue = self._failures.setdefault(operation, [])
        queue.extend([None] * after)
        queue.append(exc or throughput_error(operation))

    def items(self, table: str) -> List[Dict[str, Any]]:
        return [copy.deepcopy(v) for _, v in sorted(self.tables.get(table, {}).items())]

    def call_count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)

    def _record(self, operation: str, params: Dict[str, Any]) -> None:
        self.calls.append((operation, params))
        queue = self._failures.get(operation)
        if queue:
            exc = queue.pop(0)
            if exc is not None:
                raise exc

    # -- client API --------------------------------------------------------

    def put_item(self, TableName: str, Item: Dict[str, Any], **kwargs: Any) -> Dict[str, Any]:
        self._record("PutItem", {"TableName": TableName, "Item": Item, **kwargs})
        self.tables.setdefault(TableName, {})[_key_of(Item)] = copy.deepcopy(Item)
        return {}

    def get_item(self, TableName: str, Key: Dict[str, Any], **kwargs: Any) -> Dict[str, Any]:
        self._record("GetItem", {"TableName": TableName, "Key": Key, **kwargs})
        item = self.tables.get(TableName, {}).get(_key_of(Key))
        if item is None:
            return {}
        return {"Item": copy.deepcopy(item)}

    def query(
        self,
        TableName: str,
        KeyConditionExpression: str,
        ExpressionAttributeValues: Dict[str, Any],
        ExclusiveStartKey: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        self._record(
            "Query",
            {
                "TableName": TableName,
                "KeyConditionExpression": KeyConditionExpression,
                "ExpressionAttributeValues": ExpressionAttributeValues,
                "ExclusiveStartKey": ExclusiveStartKey,
                **kwargs,
            },
        )
        assert KeyConditionExpression == f"{HASH_KEY} = :tid"
        tenant_id = ExpressionAttributeValues[":tid"]["S"]
        rows = [
            (key, item)
            for key, item in sorted(self.tables.get(TableName, {}).items())
            if key[0] == tenant_id
        ]
        if ExclusiveStartKey:
            start = _key_of(ExclusiveStartKey)
            rows = [(key, item) for key, item in rows if key > start]

        resp: Dict[str, Any] = {}
        if self.page_size is not None and len(rows) > self.page_size:
            rows = rows[: self.page_size]
            last_key = rows[-1][0]
            resp["LastEvaluatedKey"] = {HASH_KEY: {"S": last_key[0]}, RANGE_KEY: {"S": last_key[1]}}
        resp["Items"] = [copy.deepcopy(item) for _, item in rows]
        resp["Count"] = len(rows)
        return resp

    def delete_item(self, TableName: str, Key: Dict[str, Any], **kwargs: Any) -> Dict[str, Any]:
        self._record("DeleteItem", {"TableName": TableName, "Key": Key, **kwargs})
        self.tables.get(TableName, {}).pop(_key_of(Key), None)
        return {}
