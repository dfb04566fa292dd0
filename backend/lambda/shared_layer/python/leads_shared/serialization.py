"""leads_shared.serialization — DynamoDB serialization/deserialization.

Provides TypeSerializer/TypeDeserializer wrappers, lead <-> item mapping and
the timestamp helper used for ``createdAt``/``updatedAt``.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer

from leads_shared.models import Lead

__all__ = [
    "_deserialize",
    "_item_to_lead",
    "_lead_key",
    "_lead_to_item",
    "_now_z",
    "_serialize",
]

_SER = TypeSerializer()
_DESER = TypeDeserializer()


def _serialize(value: str) -> Dict[str, Any]:
    return _SER.serialize(value)


def _deserialize(item: Dict[str, Any]) -> Dict[str, Any]:
    """Deserialize a DynamoDB item to a plain dict of strings."""
    return {k: _DESER.deserialize(v) for k, v in item.items()}


def _now_z() -> str:
    """Current UTC timestamp, ISO 8601 with microseconds and Z suffix."""
    return dt.datetime.now(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _lead_key(tenant_id: str, record_id: str) -> Dict[str, Any]:
    return {"tenantId": _serialize(tenant_id), "recordId": _serialize(record_id)}


def _lead_to_item(lead: Lead) -> Dict[str, Any]:
    # None attributes are left out of the item entirely.
    return {k: _serialize(v) for k, v in lead.to_dict().items() if v is not None}


def _item_to_lead(item: Dict[str, Any]) -> Lead:
    return Lead.from_dict(_deserialize(item))
