"""Authentication-related Pydantic schemas."""

from datetime import date
from uuid import UUID

from pydantic import BaseModel, Field

from insurance_portal.db.enums import Role
from insurance_portal.schemas.base import CamelModel


class UserSession(BaseModel):
    """
    Full session context for authenticated requests.

    Returned by the get_current_session dependency; carries everything
    needed for role, tenant and ownership checks.
    """
    user_id: UUID
    org_id: UUID
    role: Role
    email: str | None = None
    full_name: str | None = None


class LoginRequest(CamelModel):
    """
    Body of POST /api/auth/login.

    `type` selects the authenticator; the remaining fields are checked by it
    so that missing credentials map to a 400 rather than a schema error.
    """
    type: str = Field(..., max_length=20)
    access_key: str | None = Field(None, max_length=256)
    full_name: str | None = Field(None, max_length=255)
    date_of_birth: date | None = None


class UserSummary(CamelModel):
    id: UUID
    email: str | None
    role: Role
    full_name: str | None
    date_of_birth: date | None


class LoginResponse(CamelModel):
    token: str
    user: UserSummary


class MeResponse(CamelModel):
    """Response schema for GET /api/auth/me."""
    id: UUID
    email: str | None
    role: Role
    organization_id: UUID
    organization_name: str
    full_name: str | None
    date_of_birth: date | None
