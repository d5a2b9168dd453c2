"""Pydantic schemas for API request/response models."""

from insurance_portal.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    UserSession,
    UserSummary,
)
from insurance_portal.schemas.form import (
    DocumentIn,
    DocumentRead,
    FormCreate,
    FormRead,
    FormUpdate,
    InsuranceItemIn,
    InsuranceItemRead,
)
from insurance_portal.schemas.upload import UploadResponse

__all__ = [
    "DocumentIn",
    "DocumentRead",
    "FormCreate",
    "FormRead",
    "FormUpdate",
    "InsuranceItemIn",
    "InsuranceItemRead",
    "LoginRequest",
    "LoginResponse",
    "MeResponse",
    "UploadResponse",
    "UserSession",
    "UserSummary",
]
