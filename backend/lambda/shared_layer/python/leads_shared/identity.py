"""leads_shared.identity — Tenant identity for a request.

Resolves the tenant id (``sub``, falling back to ``cognito:username``) and the
``email`` claim. The claims the API Gateway Cognito authorizer places in the
request context are read first; the bearer token's claims segment is the
fallback for direct invocations and authorizers that pass no claims.

The signature is NOT verified here. In production the API Gateway Cognito
authorizer validates the token before the Lambda runs; this module only
guards against structurally broken input when invoked directly.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, Optional

from jwt.utils import base64url_decode

from leads_shared.errors import ClaimMissing, TokenMalformed, TokenMissing

__all__ = [
    "Claims",
    "authorizer_claims",
    "decode_claims",
    "email_from_claims",
    "extract_email",
    "extract_tenant_id",
    "resolve_email",
    "resolve_tenant_id",
    "strip_bearer",
    "tenant_id_from_claims",
]

_BEARER_PREFIX = "bearer "
_TENANT_CLAIMS = ("sub", "cognito:username")
_EMAIL_CLAIMS = ("email",)


class Claims:
    """Read-only view over decoded token claims.

    Only scalar claims are exposed, always as strings. Blank strings and
    nested values read as absent.
    """

    def __init__(self, raw: Dict[str, Any]):
        self._raw = dict(raw)

    def get(self, name: str) -> Optional[str]:
        value = self._raw.get(name)
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, str) and value.strip():
            return value
        return None

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __repr__(self) -> str:
        return f"Claims(keys={sorted(self._raw)})"


def strip_bearer(raw: Optional[str]) -> str:
    """Return the bare token, without a case-insensitive ``Bearer `` prefix."""
    if not raw:
        return ""
    value = raw.strip()
    if value.lower() == _BEARER_PREFIX.strip():
        return ""
    if value[: len(_BEARER_PREFIX)].lower() == _BEARER_PREFIX:
        value = value[len(_BEARER_PREFIX) :].strip()
    return value


def decode_claims(raw: Optional[str]) -> Claims:
    token = strip_bearer(raw)
    if not token:
        raise TokenMissing("Authorization header is missing")

    segments = token.split(".")
    if len(segments) != 3:
        raise TokenMalformed("Invalid JWT token format")

    # Only the claims segment is read; header and signature are left alone.
    try:
        payload = json.loads(base64url_decode(segments[1]))
    except (ValueError, TypeError) as exc:
        raise TokenMalformed(f"Invalid JWT token: {exc}") from exc

    if not isinstance(payload, dict):
        raise TokenMalformed("Invalid JWT token: payload is not an object")
    return Claims(payload)


def authorizer_claims(event: Dict[str, Any]) -> Optional[Claims]:
    """Claims supplied by an API Gateway authorizer, if any.

    REST APIs put them under ``requestContext.authorizer.claims``, HTTP APIs
    with a JWT authorizer under ``requestContext.authorizer.jwt.claims``.
    """
    authorizer = (event.get("requestContext") or {}).get("authorizer") or {}
    raw = authorizer.get("claims")
    if raw is None:
        raw = (authorizer.get("jwt") or {}).get("claims")
    if not isinstance(raw, dict) or not raw:
        return None
    return Claims(raw)


def _first(claims: Claims, names: Iterable[str]) -> Optional[str]:
    for name in names:
        value = claims.get(name)
        if value:
            return value
    return None


def tenant_id_from_claims(claims: Claims) -> str:
    value = _first(claims, _TENANT_CLAIMS)
    if not value:
        raise ClaimMissing("User ID claim not found in token")
    return value


def email_from_claims(claims: Claims) -> str:
    value = _first(claims, _EMAIL_CLAIMS)
    if not value:
        raise ClaimMissing("Email claim not found in token")
    return value


def extract_tenant_id(raw: Optional[str]) -> str:
    return tenant_id_from_claims(decode_claims(raw))


def extract_email(raw: Optional[str]) -> str:
    return email_from_claims(decode_claims(raw))


def resolve_tenant_id(raw: Optional[str], context: Optional[Claims] = None) -> str:
    """Tenant id from authorizer claims, else from the bearer token."""
    if context is not None:
        value = _first(context, _TENANT_CLAIMS)
        if value:
            return value
    return extract_tenant_id(raw)


def resolve_email(raw: Optional[str], context: Optional[Claims] = None) -> str:
    if context is not None:
        value = _first(context, _EMAIL_CLAIMS)
        if value:
            return value
    return extract_email(raw)
