"""Authentication service - login flows, lazy provisioning, session creation.

Each login type is handled by an Authenticator registered under its type.
Authorization never looks at how a user logged in, so a flow can be swapped
for a stronger one (one-time code, credential) by registering a replacement.
"""

import logging
import secrets
from datetime import date, datetime, timezone
from typing import Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from insurance_portal.core.config import settings
from insurance_portal.core.security import create_session_token
from insurance_portal.core.structured_logging import build_log_context
from insurance_portal.db.enums import LoginType, Role
from insurance_portal.db.models import Organization, User
from insurance_portal.schemas.auth import LoginRequest

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Base exception for login failures."""

    pass


class InvalidCredentialsError(AuthenticationError):
    """Credentials were supplied but did not match (401)."""

    pass


class MissingCredentialsError(AuthenticationError):
    """Required login fields were missing (400)."""

    pass


class UnsupportedLoginTypeError(AuthenticationError):
    """No authenticator is registered for the requested login type (400)."""

    pass


# =============================================================================
# Organizations
# =============================================================================

def get_or_create_default_org(db: Session, name: str) -> Organization:
    """
    Return the first organization, creating one named `name` if none exist.

    Lazily provisioned tenants all land in the oldest organization.
    """
    org = db.query(Organization).order_by(Organization.created_at.asc()).first()
    if org:
        return org
    org = Organization(name=name)
    db.add(org)
    db.flush()
    logger.info("Provisioned organization %s", org.id)
    return org


# =============================================================================
# Authenticators
# =============================================================================

class Authenticator(Protocol):
    """Resolves a login request to a user, provisioning it if needed."""

    login_type: LoginType

    def authenticate(self, db: Session, request: LoginRequest) -> User:
        ...


class AdminAccessKeyAuthenticator:
    """
    Fixed access key shared by all administrators.

    Every successful admin login resolves to one synthetic admin identity.
    """

    login_type = LoginType.ADMIN

    def authenticate(self, db: Session, request: LoginRequest) -> User:
        if not request.access_key or not secrets.compare_digest(
            request.access_key.encode(), settings.ADMIN_ACCESS_KEY.encode()
        ):
            raise InvalidCredentialsError("Invalid Access Key")

        user = db.query(User).filter(User.email == settings.ADMIN_EMAIL).first()
        if user:
            return user

        org = get_or_create_default_org(db, settings.ADMIN_ORG_NAME)
        user = User(
            organization_id=org.id,
            email=settings.ADMIN_EMAIL,
            full_name=settings.ADMIN_DISPLAY_NAME,
            role=Role.ADMIN.value,
        )
        return _insert_or_refetch(
            db, user, lambda: db.query(User).filter(User.email == settings.ADMIN_EMAIL).first()
        )


class TrustOnFirstUseClientAuthenticator:
    """
    Client identified by (full name, date of birth), with no secret.

    Intentionally weak: anyone who knows a client's name and birth date can
    act as that client. The first login with a new pair creates the user.
    """

    login_type = LoginType.CLIENT

    def authenticate(self, db: Session, request: LoginRequest) -> User:
        full_name = (request.full_name or "").strip()
        if not full_name or request.date_of_birth is None:
            raise MissingCredentialsError("Full Name and Date of Birth are required")

        user = _find_client(db, full_name, request.date_of_birth)
        if user:
            return user

        org = get_or_create_default_org(db, settings.CLIENT_ORG_NAME)
        user = User(
            organization_id=org.id,
            full_name=full_name,
            date_of_birth=request.date_of_birth,
            role=Role.CLIENT.value,
        )
        return _insert_or_refetch(
            db, user, lambda: _find_client(db, full_name, request.date_of_birth)
        )


def _find_client(db: Session, full_name: str, date_of_birth: date) -> User | None:
    return db.query(User).filter(
        User.full_name == full_name,
        User.date_of_birth == date_of_birth,
        User.role == Role.CLIENT.value,
    ).first()


def _insert_or_refetch(db: Session, user: User, refetch) -> User:
    """Insert a new user; if a concurrent login won the race, use theirs."""
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        existing = refetch()
        if existing is None:
            raise
        return existing
    logger.info(
        "Provisioned %s user",
        user.role,
        extra=build_log_context(user_id=str(user.id), org_id=str(user.organization_id)),
    )
    return user


_AUTHENTICATORS: dict[str, Authenticator] = {}


def register_authenticator(authenticator: Authenticator) -> None:
    """Register (or replace) the authenticator for its login type."""
    _AUTHENTICATORS[authenticator.login_type.value] = authenticator


def get_authenticator(login_type: str) -> Authenticator:
    authenticator = _AUTHENTICATORS.get((login_type or "").strip().lower())
    if authenticator is None:
        raise UnsupportedLoginTypeError("Invalid login type")
    return authenticator


register_authenticator(AdminAccessKeyAuthenticator())
register_authenticator(TrustOnFirstUseClientAuthenticator())


# =============================================================================
# Sessions
# =============================================================================

def create_session_for_user(user: User) -> str:
    return create_session_token(
        user_id=user.id,
        org_id=user.organization_id,
        role=user.role,
        token_version=user.token_version,
        email=user.email,
        full_name=user.full_name,
    )


def login(db: Session, request: LoginRequest) -> tuple[User, str]:
    """
    Authenticate a login request and issue a session token.

    Raises:
        UnsupportedLoginTypeError: unknown `type`
        MissingCredentialsError: required fields missing
        InvalidCredentialsError: wrong access key
    """
    authenticator = get_authenticator(request.type)
    user = authenticator.authenticate(db, request)
    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    logger.info(
        "Login succeeded (%s)",
        authenticator.login_type.value,
        extra=build_log_context(user_id=str(user.id), org_id=str(user.organization_id)),
    )
    return user, create_session_for_user(user)


def revoke_sessions(db: Session, user: User) -> None:
    """Invalidate every token issued to `user` so far."""
    user.token_version += 1
    db.commit()
