"""leads_shared.aws_clients — DynamoDB client construction.

Clients are built explicitly and handed to ``LeadStore``; the Lambda entry
point decides how long to keep one around.
"""

from __future__ import annotations

from typing import Optional

import boto3
from botocore.config import Config

from leads_shared.config import DYNAMODB_MAX_ATTEMPTS, DYNAMODB_REGION


def _new_ddb_client(region: Optional[str] = None, max_attempts: Optional[int] = None):
    """Create a DynamoDB low-level client."""
    return boto3.client(
        "dynamodb",
        region_name=region or DYNAMODB_REGION,
        config=Config(
            retries={
                "max_attempts": max_attempts or DYNAMODB_MAX_ATTEMPTS,
                "mode": "standard",
            }
        ),
    )
