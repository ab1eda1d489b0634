"""External CRM integration (token exchange and record query)."""

from app.infrastructure.external.crm.client import CrmClient, build_sync_query

__all__ = ["CrmClient", "build_sync_query"]
