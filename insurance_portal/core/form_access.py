"""Form access control - centralized permission checks for form operations.

Rules:
- Tenant: a form is only visible inside its own organization (admins included).
- Ownership: clients only ever see forms they created.
- Deletion: admins always; clients only while the form is still a Draft.
"""

from fastapi import HTTPException, status

from insurance_portal.db.enums import FormStatus, Role
from insurance_portal.db.models import Form
from insurance_portal.schemas.auth import UserSession


def check_form_access(form: Form, session: UserSession) -> None:
    """
    Check if the caller can read or write this form.

    Raises:
        HTTPException: 403 on tenant or ownership mismatch
    """
    if form.organization_id != session.org_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    if session.role == Role.ADMIN:
        return

    if form.created_by_user_id != session.user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


def can_delete_form(form: Form, session: UserSession) -> bool:
    """
    Check if the caller may soft-delete this form.

    Assumes check_form_access already passed.
    """
    if session.role == Role.ADMIN:
        return True
    return form.status == FormStatus.DRAFT.value
