"""leads_shared.persistence — Tenant-scoped lead storage in DynamoDB.

Table layout: partition key ``tenantId`` (S), sort key ``recordId`` (S).
Every read takes the tenant id as part of the key, so a lookup can never
reach a row owned by another tenant.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from leads_shared.errors import StoreUnavailable
from leads_shared.models import Lead
from leads_shared.serialization import _item_to_lead, _lead_key, _lead_to_item, _serialize

logger = logging.getLogger(__name__)

__all__ = ["LeadStore"]


class LeadStore:
    """Create/read/query/update/delete for one leads table.

    ``client`` is a boto3 DynamoDB low-level client (or anything exposing
    ``put_item``, ``get_item``, ``query`` and ``delete_item``).
    """

    def __init__(self, client: Any, table_name: str):
        self._client = client
        self.table_name = table_name

    def create(self, lead: Lead) -> Lead:
        self._put(lead, "create")
        return lead

    def get(self, tenant_id: str, record_id: str) -> Optional[Lead]:
        try:
            resp = self._client.get_item(
                TableName=self.table_name,
                Key=_lead_key(tenant_id, record_id),
                ConsistentRead=True,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("get_item failed for tenant=%s lead=%s: %s", tenant_id, record_id, exc)
            raise StoreUnavailable("Database read failed.") from exc
        raw = resp.get("Item")
        if not raw:
            return None
        return _item_to_lead(raw)

    def query_by_tenant(self, tenant_id: str) -> List[Lead]:
        params: Dict[str, Any] = {
            "TableName": self.table_name,
            "KeyConditionExpression": "tenantId = :tid",
            "ExpressionAttributeValues": {":tid": _serialize(tenant_id)},
            "ConsistentRead": True,
        }
        items: List[Dict[str, Any]] = []
        try:
            resp = self._client.query(**params)
            items.extend(resp.get("Items", []))
            while resp.get("LastEvaluatedKey"):
                resp = self._client.query(**params, ExclusiveStartKey=resp["LastEvaluatedKey"])
                items.extend(resp.get("Items", []))
        except (BotoCoreError, ClientError) as exc:
            logger.error("query failed for tenant=%s: %s", tenant_id, exc)
            raise StoreUnavailable("Database read failed.") from exc
        return [_item_to_lead(raw) for raw in items]

    def update(self, lead: Lead) -> Lead:
        # Full overwrite; last writer wins.
        self._put(lead, "update")
        return lead

    def delete(self, tenant_id: str, record_id: str) -> None:
        try:
            self._client.delete_item(
                TableName=self.table_name,
                Key=_lead_key(tenant_id, record_id),
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("delete_item failed for tenant=%s lead=%s: %s", tenant_id, record_id, exc)
            raise StoreUnavailable("Database delete failed.") from exc

    def _put(self, lead: Lead, action: str) -> None:
        try:
            self._client.put_item(TableName=self.table_name, Item=_lead_to_item(lead))
        except (BotoCoreError, ClientError) as exc:
            logger.error(
                "put_item (%s) failed for tenant=%s lead=%s: %s",
                action,
                lead.tenant_id,
                lead.record_id,
                exc,
            )
            raise StoreUnavailable("Database write failed.") from exc
