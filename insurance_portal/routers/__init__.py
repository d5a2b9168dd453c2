"""API routers."""

from insurance_portal.routers.auth import router as auth_router
from insurance_portal.routers.forms import router as forms_router
from insurance_portal.routers.uploads import router as uploads_router

__all__ = ["auth_router", "forms_router", "uploads_router"]
