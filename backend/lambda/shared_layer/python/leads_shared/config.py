"""leads_shared.config — Environment configuration and logging level."""

from __future__ import annotations

import logging
import os

__all__ = [
    "CORS_ORIGIN",
    "DYNAMODB_MAX_ATTEMPTS",
    "DYNAMODB_REGION",
    "LEADS_TABLE",
    "LOG_LEVEL",
    "logger",
]

# ---------------------------------------------------------------------------
# Configuration (read from env; callers may override at import time)
# ---------------------------------------------------------------------------

LEADS_TABLE: str = os.environ.get("LEADS_TABLE", os.environ.get("TABLE_NAME", "leads"))
DYNAMODB_REGION: str = os.environ.get("DYNAMODB_REGION", "us-east-1")
DYNAMODB_MAX_ATTEMPTS: int = int(os.environ.get("DYNAMODB_MAX_ATTEMPTS", "3"))
CORS_ORIGIN: str = os.environ.get("CORS_ORIGIN", "*")
LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logger = logging.getLogger()
logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
