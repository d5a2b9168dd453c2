"""Form service - insurance request CRUD and nested item reconciliation.

A form owns its insurance items, and each item owns its documents. Items and
documents are only ever written through create_form/update_form, and an
update is applied as one transaction: either the whole desired item list is
reconciled or nothing changes.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from insurance_portal.core.form_access import can_delete_form
from insurance_portal.core.structured_logging import build_log_context
from insurance_portal.db.enums import (
    CLIENT_STATUS_TRANSITIONS,
    ROLES_CAN_PRICE,
    ROLES_CAN_REVIEW,
    ROLES_CAN_VIEW_ALL_FORMS,
    FormStatus,
    RequestType,
)
from insurance_portal.db.models import Document, Form, InsuranceItem
from insurance_portal.schemas.auth import UserSession
from insurance_portal.schemas.form import DocumentIn, FormCreate, FormUpdate, InsuranceItemIn

logger = logging.getLogger(__name__)


class FormServiceError(Exception):
    """Base exception for form service errors."""

    pass


class FormValidationError(FormServiceError):
    """Payload is inconsistent with the stored form (400)."""

    pass


class FormPermissionError(FormServiceError):
    """Caller's role does not allow this operation on the form (403)."""

    pass


class FormVersionConflictError(FormServiceError):
    """Raised when the caller's version doesn't match the stored one."""

    def __init__(self, expected: int, actual: int | None):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Version conflict: expected {expected}, got {actual}")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _with_children(query):
    return query.options(
        selectinload(Form.items).selectinload(InsuranceItem.documents)
    )


# =============================================================================
# Queries
# =============================================================================

def get_form(
    db: Session,
    form_id: UUID,
    include_deleted: bool = False,
) -> Form | None:
    """
    Get a form with its items and documents.

    Not org-scoped: callers run check_form_access so a foreign tenant gets a
    403 rather than a 404. Soft-deleted forms are hidden unless asked for.
    """
    query = _with_children(db.query(Form)).filter(Form.id == form_id)
    if not include_deleted:
        query = query.filter(Form.deleted_at.is_(None))
    return query.first()


def list_forms(
    db: Session,
    session: UserSession,
    status: FormStatus | None = None,
    search: str | None = None,
) -> list[Form]:
    """
    List active forms visible to the caller, most recently updated first.

    Admins see every form in their organization; clients only their own.
    """
    query = _with_children(db.query(Form)).filter(
        Form.organization_id == session.org_id,
        Form.deleted_at.is_(None),
    )
    if session.role not in ROLES_CAN_VIEW_ALL_FORMS:
        query = query.filter(Form.created_by_user_id == session.user_id)
    if status is not None:
        query = query.filter(Form.status == status.value)
    if search and search.strip():
        query = query.filter(
            func.lower(Form.client_name).contains(search.strip().lower(), autoescape=True)
        )
    return query.order_by(Form.updated_at.desc(), Form.created_at.desc()).all()


# =============================================================================
# Create
# =============================================================================

def _build_documents(documents: list[DocumentIn]) -> list[Document]:
    return [Document(name=doc.name, file_url=doc.file_url) for doc in documents]


def _build_item(data: InsuranceItemIn, can_price: bool) -> InsuranceItem:
    return InsuranceItem(
        insurance_type=data.insurance_type.value,
        package=data.package.value,
        request_type=data.request_type.value,
        current_policy_number=data.current_policy_number,
        effective_date=data.effective_date,
        duration=data.duration,
        price=data.price if can_price else None,
        documents=_build_documents(data.documents),
    )


def create_form(db: Session, session: UserSession, data: FormCreate) -> Form:
    """
    Create a Draft form with its items and documents in one transaction.

    Organization and creator come from the session, never the payload.
    Prices are dropped unless the caller may set them.
    """
    can_price = session.role in ROLES_CAN_PRICE
    now = _now()
    form = Form(
        organization_id=session.org_id,
        created_by_user_id=session.user_id,
        client_name=data.client_name.strip(),
        email=data.email if data.email is not None else session.email,
        status=FormStatus.DRAFT.value,
        created_at=now,
        updated_at=now,
        items=[_build_item(item, can_price) for item in data.items],
    )
    db.add(form)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(
        "Form created with %d item(s)",
        len(data.items),
        extra=build_log_context(
            user_id=str(session.user_id), org_id=str(session.org_id), form_id=str(form.id)
        ),
    )
    return get_form(db, form.id)


# =============================================================================
# Update (reconciliation)
# =============================================================================

def resolve_status(
    current: str,
    requested: FormStatus | None,
    session: UserSession,
) -> str:
    """
    Decide the status a form ends up with after an update.

    Admins may set any status. Clients may only submit a Draft; any other
    change they request is ignored and the current status is kept.
    """
    if requested is None or requested.value == current:
        return current
    if session.role in ROLES_CAN_REVIEW:
        return requested.value
    if (FormStatus(current), requested) in CLIENT_STATUS_TRANSITIONS:
        return requested.value
    logger.info(
        "Ignored client status change %s -> %s",
        current,
        requested.value,
        extra=build_log_context(user_id=str(session.user_id)),
    )
    return current


def _ids_or_error(entries, kind: str, known: set[UUID]) -> set[UUID]:
    """Collect payload ids, rejecting duplicates and ids not owned by the parent."""
    ids: set[UUID] = set()
    for entry in entries:
        if entry.id is None:
            continue
        if entry.id in ids:
            raise FormValidationError(f"Duplicate {kind} id {entry.id}")
        ids.add(entry.id)
    unknown = ids - known
    if unknown:
        raise FormValidationError(
            f"Unknown {kind} id(s): {', '.join(sorted(str(i) for i in unknown))}"
        )
    return ids


def reconcile_documents(item: InsuranceItem, desired: list[DocumentIn]) -> None:
    """
    Three-way diff of an item's documents against the desired list.

    Stored documents missing from the list are deleted, listed documents with
    an id are updated, and listed documents without an id are inserted.
    """
    existing = {doc.id: doc for doc in item.documents}
    keep = _ids_or_error(desired, "document", set(existing))

    for doc in list(item.documents):
        if doc.id not in keep:
            item.documents.remove(doc)

    for entry in desired:
        if entry.id is None:
            item.documents.append(Document(name=entry.name, file_url=entry.file_url))
        else:
            doc = existing[entry.id]
            doc.name = entry.name
            doc.file_url = entry.file_url


def _apply_item_fields(item: InsuranceItem, data: InsuranceItemIn, can_price: bool) -> None:
    item.insurance_type = data.insurance_type.value
    item.package = data.package.value
    item.request_type = data.request_type.value
    item.effective_date = data.effective_date
    # Omitted keys leave the stored value alone; explicit null clears it
    sent = data.model_fields_set
    if "current_policy_number" in sent or data.request_type != RequestType.UPGRADE:
        item.current_policy_number = data.current_policy_number
    if "duration" in sent:
        item.duration = data.duration
    if can_price and "price" in sent:
        item.price = data.price


def reconcile_items(form: Form, desired: list[InsuranceItemIn], can_price: bool) -> None:
    """
    Turn the desired item list into deletes, updates and inserts.

    Given stored ids S and payload ids I: S - I are deleted along with their
    documents, S & I are updated in place, and entries without an id are
    inserted as new items.
    """
    existing = {item.id: item for item in form.items}
    keep = _ids_or_error(desired, "item", set(existing))

    for item in list(form.items):
        if item.id not in keep:
            form.items.remove(item)

    for entry in desired:
        if entry.id is None:
            form.items.append(_build_item(entry, can_price))
            continue
        item = existing[entry.id]
        _apply_item_fields(item, entry, can_price)
        reconcile_documents(item, entry.documents)


def update_form(
    db: Session,
    form: Form,
    session: UserSession,
    data: FormUpdate,
) -> Form:
    """
    Update form fields and reconcile its items in a single transaction.

    - Client status changes are limited to Draft -> Submitted.
    - Client-supplied prices are ignored.
    - `items` absent leaves items untouched; present means "this is the list".

    Raises:
        FormVersionConflictError: `data.version` is stale
        FormValidationError: payload references ids the form doesn't own
    """
    if data.version is not None and data.version != form.version:
        raise FormVersionConflictError(data.version, form.version)

    can_price = session.role in ROLES_CAN_PRICE
    expected_version = form.version
    try:
        if data.client_name is not None:
            form.client_name = data.client_name.strip()
        if "email" in data.model_fields_set:
            form.email = data.email
        form.status = resolve_status(form.status, data.status, session)
        if data.items is not None:
            reconcile_items(form, data.items, can_price)
        form.updated_at = _now()
        db.commit()
    except StaleDataError:
        db.rollback()
        current = db.query(Form.version).filter(Form.id == form.id).scalar()
        raise FormVersionConflictError(expected_version, current)
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Form updated to version %s",
        form.version,
        extra=build_log_context(
            user_id=str(session.user_id), org_id=str(session.org_id), form_id=str(form.id)
        ),
    )
    return get_form(db, form.id)


# =============================================================================
# Delete / restore
# =============================================================================

def delete_form(db: Session, form: Form, session: UserSession) -> None:
    """
    Soft-delete a form.

    Raises:
        FormPermissionError: client deleting a form that left Draft
    """
    if not can_delete_form(form, session):
        raise FormPermissionError("Cannot delete submitted forms")
    form.deleted_at = _now()
    db.commit()
    logger.info(
        "Form soft-deleted",
        extra=build_log_context(
            user_id=str(session.user_id), org_id=str(session.org_id), form_id=str(form.id)
        ),
    )


def restore_form(db: Session, form: Form) -> Form:
    """Clear the soft-delete marker on a form."""
    form.deleted_at = None
    form.updated_at = _now()
    db.commit()
    return get_form(db, form.id)
