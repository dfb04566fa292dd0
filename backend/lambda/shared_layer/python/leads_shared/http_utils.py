"""leads_shared.http_utils — HTTP response helpers with CORS.

Uniform response envelope, error-code to status mapping and API Gateway
event accessors used by the Leads API Lambda.
"""

from __future__ import annotations

import base64
import json
import logging
from typing import Any, Dict, Optional, Tuple

from leads_shared.config import CORS_ORIGIN
from leads_shared.errors import (
    AUTH_TOKEN_MISSING,
    AUTH_UNAUTHORIZED,
    INTERNAL_ERROR,
    METHOD_NOT_ALLOWED,
    RESOURCE_NOT_FOUND,
    VALIDATION_FAILED,
)
from leads_shared.models import ErrorDetails, OperationResult
from leads_shared.serialization import _now_z

logger = logging.getLogger(__name__)

__all__ = [
    "STATUS_BY_CODE",
    "_cors_headers",
    "_emit_access_log",
    "_envelope_error",
    "_header",
    "_path_method",
    "_raw_body",
    "_response",
    "_result_response",
]

STATUS_BY_CODE: Dict[str, int] = {
    AUTH_TOKEN_MISSING: 401,
    VALIDATION_FAILED: 400,
    RESOURCE_NOT_FOUND: 404,
    AUTH_UNAUTHORIZED: 403,
    METHOD_NOT_ALLOWED: 405,
    INTERNAL_ERROR: 500,
}


def _cors_headers() -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": CORS_ORIGIN,
        "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type, Authorization",
    }


def _response(status_code: int, payload: Any) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {**_cors_headers(), "Content-Type": "application/json"},
        "body": json.dumps(payload),
    }


def _result_response(result: OperationResult, success_status: int = 200) -> Dict[str, Any]:
    """Render an OperationResult as an API Gateway response."""
    if result.success:
        status = success_status
    else:
        status = STATUS_BY_CODE.get(result.error.code, 500)
    return _response(status, result.to_envelope())


def _envelope_error(code: str, message: str) -> Dict[str, Any]:
    """Error response for failures detected before the service runs."""
    return _result_response(OperationResult(error=ErrorDetails(code, message)))


def _header(event: Dict[str, Any], name: str) -> Optional[str]:
    """Case-insensitive header lookup (REST and HTTP API events)."""
    headers = event.get("headers") or {}
    wanted = name.lower()
    for key, value in headers.items():
        if isinstance(key, str) and key.lower() == wanted:
            return value
    multi = event.get("multiValueHeaders") or {}
    for key, values in multi.items():
        if isinstance(key, str) and key.lower() == wanted and values:
            return values[0]
    return None


def _raw_body(event: Dict[str, Any]) -> Optional[str]:
    """Request body as text (base64 bodies decoded); parsing is left to the service."""
    raw = event.get("body")
    if raw is None:
        return None
    if event.get("isBase64Encoded"):
        try:
            return base64.b64decode(raw).decode("utf-8", errors="replace")
        except (ValueError, TypeError) as exc:
            logger.warning("base64 body could not be decoded: %s", exc)
    return raw


def _path_method(event: Dict[str, Any]) -> Tuple[str, str]:
    """Extract HTTP method and path from a REST (v1) or HTTP (v2) API event."""
    rc = event.get("requestContext") or {}
    http = rc.get("http") or {}
    method = (http.get("method") or event.get("httpMethod") or "GET").upper()
    path = event.get("path") or event.get("rawPath") or http.get("path") or "/"
    return method, path


def _emit_access_log(
    *,
    method: str,
    path: str,
    status: int,
    latency_ms: int,
    error_code: Optional[str] = None,
) -> None:
    payload = {
        "timestamp": _now_z(),
        "component": "leads_api",
        "event": "request",
        "method": method,
        "path": path,
        "status": status,
        "error_code": error_code or "",
        "latency_ms": latency_ms,
    }
    logger.info(json.dumps(payload, sort_keys=True))
