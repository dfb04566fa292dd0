"""leads_shared.service — Lead operations scoped to the caller's tenant.

Every operation resolves the tenant first (authorizer claims, else the bearer
token) and fails closed on any identity error. The tenant id used for storage
never comes from the request body.

Operations return an ``OperationResult`` and do not raise: typed failures
become their error details and anything unexpected becomes INTERNAL_ERROR
(logged with traceback, never echoed to the caller).
"""

from __future__ import annotations

import functools
import json
import logging
import uuid
from typing import Any, Callable, Dict, List, Optional

from leads_shared.errors import (
    GENERIC_INTERNAL_MESSAGE,
    INTERNAL_ERROR,
    Forbidden,
    IdentityError,
    LeadsError,
    NotFound,
    StoreUnavailable,
    ValidationFailed,
)
from leads_shared.identity import Claims, resolve_email, resolve_tenant_id
from leads_shared.models import OPTIONAL_FIELDS, ErrorDetails, Lead, LeadInput, OperationResult
from leads_shared.persistence import LeadStore
from leads_shared.serialization import _now_z

logger = logging.getLogger(__name__)

__all__ = ["DEFAULT_REFERENCE_LEAD", "LeadService"]

# Seeded for every tenant by init_leads.
DEFAULT_REFERENCE_LEAD: Dict[str, str] = {
    "name": "Anthony Pearson",
    "title": "CTO",
    "company": "Mountain Technologies LLC",
    "phone": "952-111-1111",
    "email": "info@mountaintechnologiesllc.com",
    "location": "Minneapolis, MN",
    "notes": "Likes to code",
}


def _new_record_id() -> str:
    return str(uuid.uuid4())


def _operation(fn: Callable[..., Any]) -> Callable[..., OperationResult]:
    """Wrap a service method so it always returns an OperationResult."""

    @functools.wraps(fn)
    def wrapper(self: "LeadService", *args: Any, **kwargs: Any) -> OperationResult:
        name = fn.__name__
        try:
            return OperationResult(data=fn(self, *args, **kwargs))
        except IdentityError as exc:
            logger.warning("%s: authorization error (%s): %s", name, type(exc).__name__, exc)
            return OperationResult(error=ErrorDetails(exc.code, exc.message))
        except StoreUnavailable as exc:
            logger.error("%s: store unavailable: %s", name, exc.__cause__ or exc)
            return OperationResult(error=ErrorDetails(exc.code, exc.message))
        except LeadsError as exc:
            logger.info("%s: %s: %s", name, exc.code, exc)
            return OperationResult(error=ErrorDetails(exc.code, exc.message, exc.details))
        except Exception:
            logger.exception("%s: unexpected error", name)
            return OperationResult(error=ErrorDetails(INTERNAL_ERROR, GENERIC_INTERNAL_MESSAGE))

    return wrapper


def _parse_body(body: Any) -> LeadInput:
    if body is None or (isinstance(body, (str, bytes)) and not body.strip()):
        raise ValidationFailed("Request body is required")
    if isinstance(body, (str, bytes)):
        try:
            body = json.loads(body)
        except (ValueError, TypeError) as exc:
            raise ValidationFailed("Invalid JSON in request body") from exc
    if not isinstance(body, dict):
        raise ValidationFailed("Invalid JSON in request body")
    return LeadInput.from_body(body)


def _require_record_id(record_id: Optional[str]) -> str:
    if not record_id or not str(record_id).strip():
        raise ValidationFailed("Lead ID is required")
    return str(record_id)


class LeadService:
    def __init__(
        self,
        store: LeadStore,
        *,
        clock: Callable[[], str] = _now_z,
        id_factory: Callable[[], str] = _new_record_id,
    ):
        self._store = store
        self._clock = clock
        self._new_id = id_factory

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    @_operation
    def create_lead(self, token: Optional[str], body: Any, *, context: Optional[Claims] = None) -> Dict[str, Any]:
        tenant_id = resolve_tenant_id(token, context)
        data = _parse_body(body).validate()

        now = self._clock()
        lead = Lead(
            tenant_id=tenant_id,
            record_id=self._new_id(),
            name=data.name or "",
            created_at=now,
            updated_at=now,
            **{name: getattr(data, name) for name in OPTIONAL_FIELDS},
        )
        self._store.create(lead)
        logger.info("lead created: tenant=%s lead=%s", tenant_id, lead.record_id)
        return lead.to_dict()

    @_operation
    def list_leads(self, token: Optional[str], *, context: Optional[Claims] = None) -> Dict[str, Any]:
        tenant_id = resolve_tenant_id(token, context)
        leads = self._store.query_by_tenant(tenant_id)
        leads.sort(key=lambda lead: (lead.created_at, lead.record_id))
        logger.info("found %d leads for tenant=%s", len(leads), tenant_id)
        return {"records": [lead.to_dict() for lead in leads], "count": len(leads)}

    @_operation
    def get_lead(
        self, token: Optional[str], record_id: Optional[str], *, context: Optional[Claims] = None
    ) -> Dict[str, Any]:
        tenant_id = resolve_tenant_id(token, context)
        record_id = _require_record_id(record_id)
        return self._owned_lead(tenant_id, record_id, "access").to_dict()

    @_operation
    def update_lead(
        self, token: Optional[str], record_id: Optional[str], body: Any, *, context: Optional[Claims] = None
    ) -> Dict[str, Any]:
        tenant_id = resolve_tenant_id(token, context)
        record_id = _require_record_id(record_id)
        data = _parse_body(body).validate()

        lead = self._owned_lead(tenant_id, record_id, "update")
        lead.name = data.name or ""
        for name in OPTIONAL_FIELDS:
            setattr(lead, name, getattr(data, name))
        lead.updated_at = self._clock()

        self._store.update(lead)
        logger.info("lead updated: tenant=%s lead=%s", tenant_id, record_id)
        return lead.to_dict()

    @_operation
    def delete_lead(
        self, token: Optional[str], record_id: Optional[str], *, context: Optional[Claims] = None
    ) -> Dict[str, Any]:
        tenant_id = resolve_tenant_id(token, context)
        record_id = _require_record_id(record_id)

        self._owned_lead(tenant_id, record_id, "delete")
        self._store.delete(tenant_id, record_id)
        logger.info("lead deleted: tenant=%s lead=%s", tenant_id, record_id)
        return {"message": "Lead deleted successfully", "recordId": record_id}

    @_operation
    def init_leads(self, token: Optional[str], *, context: Optional[Claims] = None) -> Dict[str, Any]:
        tenant_id = resolve_tenant_id(token, context)
        email = resolve_email(token, context)

        now = self._clock()
        reference = Lead(
            tenant_id=tenant_id,
            record_id=self._new_id(),
            created_at=now,
            updated_at=now,
            **DEFAULT_REFERENCE_LEAD,
        )
        own_email = Lead(
            tenant_id=tenant_id,
            record_id=self._new_id(),
            name="",
            email=email,
            created_at=now,
            updated_at=now,
        )

        # Sequential, no rollback: a failure on the second write keeps the first.
        created: List[Lead] = []
        for lead in (reference, own_email):
            self._store.create(lead)
            created.append(lead)

        logger.info("default leads created for tenant=%s", tenant_id)
        return {
            "message": "Default leads created successfully",
            "records": [lead.to_dict() for lead in created],
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _owned_lead(self, tenant_id: str, record_id: str, action: str) -> Lead:
        lead = self._store.get(tenant_id, record_id)
        if lead is None:
            logger.info("lead not found: tenant=%s lead=%s", tenant_id, record_id)
            raise NotFound(f"Lead {record_id} not found for tenant {tenant_id}")
        # The lookup is already keyed by tenant; this only trips if a store
        # implementation ever returns a row it should not have.
        if lead.tenant_id != tenant_id:
            logger.warning(
                "authorization failed: tenant=%s attempted to %s lead=%s owned by %s",
                tenant_id,
                action,
                record_id,
                lead.tenant_id,
            )
            raise Forbidden(f"You are not authorized to {action} this lead")
        return lead
