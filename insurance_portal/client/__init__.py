"""Python client for the portal API (dashboard helpers and form editor sync)."""

from insurance_portal.client.api import PortalClient
from insurance_portal.client.dashboard import (
    ALL_STATUSES,
    filter_by_status,
    search_by_client_name,
    status_counts,
    visible_forms,
)
from insurance_portal.client.editor import FormEditorSession
from insurance_portal.client.errors import AuthError, ClientError, ConflictError

__all__ = [
    "ALL_STATUSES",
    "AuthError",
    "ClientError",
    "ConflictError",
    "FormEditorSession",
    "PortalClient",
    "filter_by_status",
    "search_by_client_name",
    "status_counts",
    "visible_forms",
]
