"""Forms router - insurance request CRUD and PDF summary export."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from insurance_portal.core.deps import (
    get_current_session,
    get_db,
    require_csrf_header,
    require_roles,
)
from insurance_portal.core.form_access import check_form_access
from insurance_portal.core.structured_logging import build_log_context
from insurance_portal.db.enums import FormStatus, Role
from insurance_portal.db.models import Form, Organization
from insurance_portal.schemas.auth import UserSession
from insurance_portal.schemas.form import FormCreate, FormRead, FormUpdate
from insurance_portal.services import form_service, pdf_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_form_with_access(
    db: Session,
    form_id: UUID,
    session: UserSession,
    include_deleted: bool = False,
) -> Form:
    """Get form and verify tenant/ownership access."""
    form = form_service.get_form(db, form_id, include_deleted=include_deleted)
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")
    check_form_access(form, session)
    return form


# =============================================================================
# Read
# =============================================================================

@router.get("", response_model=list[FormRead])
def list_forms(
    status: FormStatus | None = Query(None, description="Only forms in this status"),
    q: str | None = Query(None, max_length=255, description="Client name contains"),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    List active forms, most recently updated first.

    Admins see every form in the organization; clients only their own.
    """
    forms = form_service.list_forms(db, session, status=status, search=q)
    return [FormRead.model_validate(f) for f in forms]


@router.get("/{form_id}", response_model=FormRead)
def get_form(
    form_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Get a form with its items and documents."""
    form = _get_form_with_access(db, form_id, session)
    return FormRead.model_validate(form)


@router.get("/{form_id}/pdf")
def export_form_pdf(
    form_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Download a priced summary of the form as a PDF attachment."""
    form = _get_form_with_access(db, form_id, session)
    org = db.query(Organization).filter(Organization.id == form.organization_id).first()

    try:
        pdf_bytes = pdf_service.create_form_summary_pdf(form, org_name=org.name)
    except Exception:
        logger.exception(
            "PDF export failed",
            extra=build_log_context(
                user_id=str(session.user_id), org_id=str(session.org_id), form_id=str(form.id)
            ),
        )
        raise HTTPException(status_code=500, detail="Failed to generate PDF")

    filename = pdf_service.summary_filename(form.client_name)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


# =============================================================================
# Write
# =============================================================================

@router.post(
    "",
    response_model=FormRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_form(
    data: FormCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Create a Draft form with its items and documents."""
    form = form_service.create_form(db, session, data)
    return FormRead.model_validate(form)


@router.put(
    "/{form_id}",
    response_model=FormRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_form(
    form_id: UUID,
    data: FormUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Update a form and reconcile its items and documents.

    Supports optimistic locking via `version` (returns 409 on conflict).
    """
    form = _get_form_with_access(db, form_id, session)
    try:
        form = form_service.update_form(db, form, session, data)
    except form_service.FormVersionConflictError as e:
        raise HTTPException(
            status_code=409,
            detail=f"Version conflict: expected {e.expected}, got {e.actual}",
        )
    except form_service.FormValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return FormRead.model_validate(form)


@router.delete("/{form_id}", dependencies=[Depends(require_csrf_header)])
def delete_form(
    form_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Soft-delete a form.

    Admins: any form in the organization. Clients: own forms while in Draft.
    """
    form = _get_form_with_access(db, form_id, session)
    try:
        form_service.delete_form(db, form, session)
    except form_service.FormPermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return {"message": "Form deleted"}


@router.post(
    "/{form_id}/restore",
    response_model=FormRead,
    dependencies=[Depends(require_csrf_header)],
)
def restore_form(
    form_id: UUID,
    session: UserSession = Depends(require_roles([Role.ADMIN])),
    db: Session = Depends(get_db),
):
    """Undo a soft delete (admin only)."""
    form = _get_form_with_access(db, form_id, session, include_deleted=True)
    if form.deleted_at is None:
        return FormRead.model_validate(form)
    form = form_service.restore_form(db, form)
    return FormRead.model_validate(form)
