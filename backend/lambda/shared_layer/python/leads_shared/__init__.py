"""leads_shared — Shared core for the Leads API Lambda functions.

Provides:
    - Bearer token identity extraction (tenant id / email claims)
    - Tenant-scoped DynamoDB lead store
    - Lead service operations (create, list, get, update, delete, init)
    - HTTP response envelope helpers with CORS
"""

__version__ = "1.0.0"
