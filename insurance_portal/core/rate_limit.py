"""Rate limiting configuration for the portal API."""

import os

from slowapi import Limiter
from slowapi.util import get_remote_address

from insurance_portal.core.config import settings

IS_TESTING = os.getenv("TESTING", "").lower() in ("1", "true", "yes")

# In-memory storage: the API runs as a single process.
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    enabled=not IS_TESTING,
)

AUTH_RATE_LIMIT = f"{max(settings.RATE_LIMIT_AUTH, 1)}/minute"
