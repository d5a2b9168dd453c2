"""Authentication router: admin/client login and session management."""

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from insurance_portal.core.config import settings
from insurance_portal.core.deps import COOKIE_NAME, get_current_session, get_db
from insurance_portal.core.rate_limit import AUTH_RATE_LIMIT, limiter
from insurance_portal.core.security import token_expires_in_seconds
from insurance_portal.db.models import Organization, User
from insurance_portal.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    UserSession,
    UserSummary,
)
from insurance_portal.services import auth_service

router = APIRouter()


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        max_age=token_expires_in_seconds(),
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )


# =============================================================================
# Login
# =============================================================================

@router.post("/login", response_model=LoginResponse)
@limiter.limit(AUTH_RATE_LIMIT)
def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: Session = Depends(get_db),
) -> LoginResponse:
    """
    Log in as admin (access key) or client (full name + date of birth).

    Users and their organization are provisioned on first login. The token is
    returned in the body for bearer use and also set as an HttpOnly cookie.
    """
    return _login(response, body, db)


@router.post("/register", response_model=LoginResponse)
@limiter.limit(AUTH_RATE_LIMIT)
def register(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: Session = Depends(get_db),
) -> LoginResponse:
    """Alias of /login: accounts are created on first login."""
    return _login(response, body, db)


def _login(response: Response, body: LoginRequest, db: Session) -> LoginResponse:
    try:
        user, token = auth_service.login(db, body)
    except auth_service.InvalidCredentialsError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except auth_service.AuthenticationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    _set_session_cookie(response, token)
    return LoginResponse(token=token, user=UserSummary.model_validate(user))


@router.post("/verify")
def verify_magic_link() -> JSONResponse:
    """Magic-link login was removed; kept so old links get a clear answer."""
    return JSONResponse(status_code=410, content={"detail": "Magic link login is deprecated"})


@router.post("/logout")
def logout(response: Response) -> dict:
    """Clear the session cookie. Bearer tokens simply expire."""
    response.delete_cookie(COOKIE_NAME, path="/")
    return {"status": "ok"}


# =============================================================================
# Session
# =============================================================================

@router.get("/me", response_model=MeResponse)
def get_me(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
) -> MeResponse:
    """
    Get current authenticated user info.

    Used by the client to bootstrap auth state on page load.
    """
    user = db.query(User).filter(User.id == session.user_id).first()
    org = db.query(Organization).filter(Organization.id == session.org_id).first()
    return MeResponse(
        id=user.id,
        email=user.email,
        role=session.role,
        organization_id=org.id,
        organization_name=org.name,
        full_name=user.full_name,
        date_of_birth=user.date_of_birth,
    )
