"""Pydantic schemas for insurance request forms."""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from uuid import UUID

from pydantic import EmailStr, Field, field_validator, model_validator

from insurance_portal.db.enums import FormStatus, InsuranceType, PackageTier, RequestType
from insurance_portal.schemas.base import CamelModel


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


# =============================================================================
# Documents
# =============================================================================

class DocumentIn(CamelModel):
    """Document reference in a create/update payload. No id means new."""
    id: UUID | None = None
    name: str = Field(..., min_length=1, max_length=255)
    file_url: str = Field(..., min_length=1, max_length=500)


class DocumentRead(CamelModel):
    id: UUID
    name: str
    file_url: str
    created_at: datetime


# =============================================================================
# Insurance items
# =============================================================================

class InsuranceItemIn(CamelModel):
    """Item in a create/update payload. No id means new."""
    id: UUID | None = None
    insurance_type: InsuranceType
    package: PackageTier = PackageTier.BASIC
    request_type: RequestType = RequestType.NEW_POLICY
    current_policy_number: str | None = Field(None, max_length=100)
    effective_date: date | None = None
    duration: str | None = Field(None, max_length=50)
    price: str | None = Field(None, max_length=32)
    documents: list[DocumentIn] = Field(default_factory=list)

    @field_validator("current_policy_number", "effective_date", "duration", "price", mode="before")
    @classmethod
    def blank_strings_are_none(cls, v):
        return _blank_to_none(v)

    @field_validator("price")
    @classmethod
    def price_is_decimal(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        try:
            amount = Decimal(v)
        except InvalidOperation:
            raise ValueError("price must be a decimal number")
        if not amount.is_finite() or amount < 0:
            raise ValueError("price must be a non-negative number")
        return v

    @model_validator(mode="after")
    def policy_number_only_for_upgrades(self):
        if self.request_type != RequestType.UPGRADE:
            self.current_policy_number = None
        return self


class InsuranceItemRead(CamelModel):
    id: UUID
    insurance_type: str
    package: str
    request_type: str
    current_policy_number: str | None
    effective_date: date | None
    duration: str | None
    price: str | None
    documents: list[DocumentRead] = []


# =============================================================================
# Forms
# =============================================================================

class FormCreate(CamelModel):
    """Request to create a form. Status always starts at Draft."""
    client_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr | None = None
    items: list[InsuranceItemIn] = Field(default_factory=list)

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        return _blank_to_none(v)


class FormUpdate(CamelModel):
    """
    Request to update a form.

    `items`, when present, is the full desired item list and is reconciled
    against the stored items. `version` is the version the caller last read;
    a stale value is rejected with 409.
    """
    client_name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    status: FormStatus | None = None
    version: int | None = Field(None, ge=1)
    items: list[InsuranceItemIn] | None = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        return _blank_to_none(v)


class FormRead(CamelModel):
    """Full form response, including items and their documents."""
    id: UUID
    organization_id: UUID
    created_by_user_id: UUID
    client_name: str
    email: str | None
    status: FormStatus
    version: int
    created_at: datetime
    updated_at: datetime
    items: list[InsuranceItemRead] = []
