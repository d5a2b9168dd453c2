"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import (
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    TIMESTAMP,
    UniqueConstraint,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from insurance_portal.db.base import Base
from insurance_portal.db.enums import FormStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Organization(Base):
    """
    A tenant in the multi-tenant system.

    Users and forms belong to an organization
    and must be scoped by organization_id in all queries.
    """

    __tablename__ = "organizations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    # Relationships
    users: Mapped[list["User"]] = relationship(back_populates="organization")
    forms: Mapped[list["Form"]] = relationship(back_populates="organization")


class User(Base):
    """
    Application user.

    Admins are identified by email; clients by the (full_name, date_of_birth)
    pair. No passwords are stored.
    """

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("full_name", "date_of_birth", name="uq_users_full_name_dob"),
        Index("ix_users_organization_id", "organization_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    email: Mapped[str | None] = mapped_column(String(320), unique=True, nullable=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    token_version: Mapped[int] = mapped_column(Integer, server_default=text("1"), default=1, nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    # Relationships
    organization: Mapped["Organization"] = relationship(back_populates="users")
    forms: Mapped[list["Form"]] = relationship(back_populates="created_by")


class Form(Base):
    """
    An insurance request.

    Soft-deleted via deleted_at. `version` increments on every update and is
    used for optimistic concurrency; `updated_at` drives client polling.
    """

    __tablename__ = "forms"
    __table_args__ = (
        Index("ix_forms_org_updated", "organization_id", "updated_at"),
        Index("ix_forms_created_by", "created_by_user_id"),
        Index("ix_forms_deleted_at", "deleted_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    created_by_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=FormStatus.DRAFT.value, server_default=text("'Draft'"), nullable=False
    )
    version: Mapped[int] = mapped_column(Integer, default=1, server_default=text("1"), nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )

    # Relationships
    organization: Mapped["Organization"] = relationship(back_populates="forms")
    created_by: Mapped["User"] = relationship(back_populates="forms")
    items: Mapped[list["InsuranceItem"]] = relationship(
        back_populates="form",
        cascade="all, delete-orphan",
        order_by="InsuranceItem.created_at",
    )

    # SQLAlchemy bumps `version` on every UPDATE and raises StaleDataError
    # when another transaction changed the row first.
    __mapper_args__ = {"version_id_col": version}


class InsuranceItem(Base):
    """One requested policy within a form. Price is a decimal string set by admins."""

    __tablename__ = "insurance_items"
    __table_args__ = (
        Index("ix_insurance_items_form_id", "form_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    form_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
    )
    insurance_type: Mapped[str] = mapped_column(String(100), nullable=False)
    package: Mapped[str] = mapped_column(String(50), nullable=False)
    request_type: Mapped[str] = mapped_column(String(50), nullable=False)
    current_policy_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    effective_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    duration: Mapped[str | None] = mapped_column(String(50), nullable=True)
    price: Mapped[str | None] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, server_default=func.now(), nullable=False)

    # Relationships
    form: Mapped["Form"] = relationship(back_populates="items")
    documents: Mapped[list["Document"]] = relationship(
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="Document.created_at",
    )


class Document(Base):
    """Supporting file attached to an insurance item (URL from /api/upload)."""

    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_item_id", "item_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("insurance_items.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_url: Mapped[str] = mapped_column(String(500), nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, server_default=func.now(), nullable=False)

    # Relationships
    item: Mapped["InsuranceItem"] = relationship(back_populates="documents")
