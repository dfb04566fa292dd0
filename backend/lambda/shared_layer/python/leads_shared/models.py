"""leads_shared.models — Lead record, request shape and result types."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from leads_shared.errors import ValidationFailed

__all__ = [
    "OPTIONAL_FIELDS",
    "ErrorDetails",
    "Lead",
    "LeadInput",
    "OperationResult",
]

OPTIONAL_FIELDS = ("title", "company", "phone", "email", "location", "notes")


@dataclass
class Lead:
    tenant_id: str
    record_id: str
    name: str
    title: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Public (and storage) shape, camelCase keys."""
        out: Dict[str, Any] = {
            "tenantId": self.tenant_id,
            "recordId": self.record_id,
            "name": self.name,
        }
        for name in OPTIONAL_FIELDS:
            out[name] = getattr(self, name)
        out["createdAt"] = self.created_at
        out["updatedAt"] = self.updated_at
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Lead":
        return cls(
            tenant_id=str(data.get("tenantId") or ""),
            record_id=str(data.get("recordId") or ""),
            name=str(data.get("name") or ""),
            created_at=str(data.get("createdAt") or ""),
            updated_at=str(data.get("updatedAt") or ""),
            **{name: data.get(name) for name in OPTIONAL_FIELDS},
        )


@dataclass(frozen=True)
class LeadInput:
    """Client-supplied lead fields, used for both create and update.

    Ownership and timestamps are never taken from the request body.
    """

    name: Optional[str] = None
    title: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_body(cls, body: Dict[str, Any]) -> "LeadInput":
        values: Dict[str, Optional[str]] = {}
        bad = []
        for f in fields(cls):
            value = body.get(f.name)
            if value is not None and not isinstance(value, str):
                bad.append(f.name)
                continue
            values[f.name] = value
        if bad:
            raise ValidationFailed(
                "Invalid JSON in request body",
                details={name: "must be a string" for name in bad},
            )
        return cls(**values)

    def validate(self) -> "LeadInput":
        if not self.name or not self.name.strip():
            raise ValidationFailed("Name is required")
        return self


@dataclass(frozen=True)
class ErrorDetails:
    code: str
    message: str
    details: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            out["details"] = dict(self.details)
        return out


@dataclass
class OperationResult:
    data: Any = None
    error: Optional[ErrorDetails] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def to_envelope(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "data": self.data if self.success else None,
            "error": self.error.to_dict() if self.error else None,
        }
