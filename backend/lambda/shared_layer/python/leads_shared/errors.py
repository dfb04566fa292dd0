"""leads_shared.errors — Failure kinds raised inside the lead service.

Each kind carries the public error code and message that end up in the
response envelope. Identity failures all share ``AUTH_TOKEN_MISSING``; the
concrete subclass is only visible in logs.
"""

from __future__ import annotations

from typing import Dict, Optional

AUTH_TOKEN_MISSING = "AUTH_TOKEN_MISSING"
VALIDATION_FAILED = "VALIDATION_FAILED"
RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
AUTH_UNAUTHORIZED = "AUTH_UNAUTHORIZED"
INTERNAL_ERROR = "INTERNAL_ERROR"
METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"

GENERIC_AUTH_MESSAGE = "Valid authorization token is required"
GENERIC_INTERNAL_MESSAGE = "An unexpected error occurred"


class LeadsError(Exception):
    code: str = INTERNAL_ERROR
    public_message: Optional[str] = None

    def __init__(self, message: str = "", details: Optional[Dict[str, str]] = None):
        super().__init__(message or self.public_message or self.code)
        self.details = details

    @property
    def message(self) -> str:
        """Message safe to return to the caller."""
        return self.public_message or str(self)


class IdentityError(LeadsError, ValueError):
    code = AUTH_TOKEN_MISSING
    public_message = GENERIC_AUTH_MESSAGE


class TokenMissing(IdentityError):
    pass


class TokenMalformed(IdentityError):
    pass


class ClaimMissing(IdentityError):
    pass


class ValidationFailed(LeadsError):
    code = VALIDATION_FAILED


class NotFound(LeadsError):
    code = RESOURCE_NOT_FOUND
    public_message = "Lead not found"


class Forbidden(LeadsError):
    code = AUTH_UNAUTHORIZED


class StoreUnavailable(LeadsError):
    code = INTERNAL_ERROR
    public_message = GENERIC_INTERNAL_MESSAGE
