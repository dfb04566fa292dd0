"""leads_api/lambda_function.py

Lambda service for per-user lead (contact) records. Each caller only ever sees
and changes the leads stored under their own tenant id, which is taken from
the bearer token.

Routes (via API Gateway proxy):
    POST   /leads                 Create a lead
    GET    /leads                 List the caller's leads
    GET    /leads/{recordId}      Get one lead
    PUT    /leads/{recordId}      Replace a lead's fields
    DELETE /leads/{recordId}      Delete a lead
    POST   /leads/init            Seed the default leads for the caller
    OPTIONS /leads[/...]          CORS preflight

Auth:
    Requires `Authorization: Bearer <token>`. The API Gateway Cognito authorizer
    verifies it upstream and passes its claims in the request context, which
    are preferred; otherwise the tenant is read from the JWT itself. Requests
    without a bearer token are rejected before touching DynamoDB.

Environment variables:
    LEADS_TABLE            default: TABLE_NAME, then "leads"
    DYNAMODB_REGION        default: us-east-1
    DYNAMODB_MAX_ATTEMPTS  default: 3
    CORS_ORIGIN            default: *
    LOG_LEVEL              default: INFO
"""

from __future__ import annotations

import re
import time
from typing import Any, Dict, Optional, Tuple
from urllib.parse import unquote

from leads_shared.aws_clients import _new_ddb_client
from leads_shared.config import LEADS_TABLE, logger
from leads_shared.errors import (
    AUTH_TOKEN_MISSING,
    GENERIC_AUTH_MESSAGE,
    METHOD_NOT_ALLOWED,
    RESOURCE_NOT_FOUND,
)
from leads_shared.http_utils import (
    _cors_headers,
    _emit_access_log,
    _envelope_error,
    _header,
    _path_method,
    _raw_body,
    _result_response,
)
from leads_shared.identity import authorizer_claims, strip_bearer
from leads_shared.persistence import LeadStore
from leads_shared.service import LeadService

# ---------------------------------------------------------------------------
# Service (module-level for container reuse)
# ---------------------------------------------------------------------------

_service: Optional[LeadService] = None


def _get_service() -> LeadService:
    global _service
    if _service is None:
        _service = LeadService(LeadStore(_new_ddb_client(), LEADS_TABLE))
    return _service


# ---------------------------------------------------------------------------
# Path parsing
# ---------------------------------------------------------------------------

_LEADS_PATH = re.compile(r"^/leads(?:/(?P<recordId>[^/]+))?/?$")
_INIT_SEGMENT = "init"


def _record_id(event: Dict[str, Any], match: "re.Match[str]") -> Optional[str]:
    path_params = event.get("pathParameters") or {}
    record_id = path_params.get("recordId") or path_params.get("leadId") or match.group("recordId")
    if record_id is None:
        return None
    return unquote(record_id)


def _method_not_allowed(method: str, path: str) -> Dict[str, Any]:
    return _envelope_error(METHOD_NOT_ALLOWED, f"Method {method} not allowed on {path}")


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------


def _route(event: Dict[str, Any], method: str, path: str) -> Tuple[Dict[str, Any], Optional[str]]:
    """Authenticate and dispatch. Returns (response, error_code)."""
    auth_header = _header(event, "Authorization")
    if not strip_bearer(auth_header):
        logger.warning("auth failed: no bearer token. method=%s path=%s", method, path)
        return _envelope_error(AUTH_TOKEN_MISSING, GENERIC_AUTH_MESSAGE), AUTH_TOKEN_MISSING

    match = _LEADS_PATH.match(path)
    if not match:
        return _envelope_error(RESOURCE_NOT_FOUND, "Route not found"), RESOURCE_NOT_FOUND

    record_id = _record_id(event, match)
    claims = authorizer_claims(event)
    service = _get_service()

    if record_id is None:
        if method == "POST":
            result, status = service.create_lead(auth_header, _raw_body(event), context=claims), 201
        elif method == "GET":
            result, status = service.list_leads(auth_header, context=claims), 200
        else:
            return _method_not_allowed(method, path), METHOD_NOT_ALLOWED

    elif record_id == _INIT_SEGMENT:
        if method != "POST":
            return _method_not_allowed(method, path), METHOD_NOT_ALLOWED
        result, status = service.init_leads(auth_header, context=claims), 201

    elif method == "GET":
        result, status = service.get_lead(auth_header, record_id, context=claims), 200
    elif method == "PUT":
        result, status = service.update_lead(auth_header, record_id, _raw_body(event), context=claims), 200
    elif method == "DELETE":
        result, status = service.delete_lead(auth_header, record_id, context=claims), 200
    else:
        return _method_not_allowed(method, path), METHOD_NOT_ALLOWED

    return _result_response(result, status), (result.error.code if result.error else None)


# ---------------------------------------------------------------------------
# Handler
# ---------------------------------------------------------------------------


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    started = time.time()
    method, path = _path_method(event)

    # CORS preflight
    if method == "OPTIONS":
        return {"statusCode": 204, "headers": _cors_headers(), "body": ""}

    resp, error_code = _route(event, method, path)
    _emit_access_log(
        method=method,
        path=path,
        status=resp["statusCode"],
        latency_ms=int((time.time() - started) * 1000),
        error_code=error_code,
    )
    return resp
