"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database, fresh schema per test
- JWT token minting for authenticated tests
- HTTPX AsyncClient per role (bearer token) plus an anonymous one
"""
import os
import tempfile
import uuid
from dataclasses import dataclass
from datetime import date
from typing import AsyncGenerator, Callable, Generator

# Must be set before the app (and its settings) are imported
os.environ["TESTING"] = "1"
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="portal-uploads-"))

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from insurance_portal.core.deps import get_db
from insurance_portal.core.security import create_session_token
from insurance_portal.db.base import Base
from insurance_portal.db.enums import FormStatus, InsuranceType, PackageTier, RequestType, Role
from insurance_portal.db.models import Document, Form, InsuranceItem, Organization, User
from insurance_portal.main import app


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Session on a private in-memory database.

    StaticPool keeps one connection so every session sees the same data.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def test_org(db: Session) -> Organization:
    org = Organization(name="Test Organization")
    db.add(org)
    db.commit()
    return org


@pytest.fixture(scope="function")
def other_org(db: Session, test_org: Organization) -> Organization:
    """A second tenant, created after test_org."""
    org = Organization(name="Other Organization")
    db.add(org)
    db.commit()
    return org


@pytest.fixture(scope="function")
def admin_user(db: Session, test_org: Organization) -> User:
    user = User(
        organization_id=test_org.id,
        email=f"admin-{uuid.uuid4().hex[:8]}@test.com",
        full_name="Test Admin",
        role=Role.ADMIN.value,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture(scope="function")
def client_user(db: Session, test_org: Organization) -> User:
    user = User(
        organization_id=test_org.id,
        email="jane@test.com",
        full_name="Jane Client",
        date_of_birth=date(1990, 5, 17),
        role=Role.CLIENT.value,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture(scope="function")
def other_client_user(db: Session, test_org: Organization) -> User:
    user = User(
        organization_id=test_org.id,
        full_name="Other Client",
        date_of_birth=date(1985, 1, 2),
        role=Role.CLIENT.value,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture(scope="function")
def foreign_admin_user(db: Session, other_org: Organization) -> User:
    user = User(
        organization_id=other_org.id,
        email="admin@other.com",
        full_name="Foreign Admin",
        role=Role.ADMIN.value,
    )
    db.add(user)
    db.commit()
    return user


# =============================================================================
# Form factory
# =============================================================================

@pytest.fixture(scope="function")
def make_form(db: Session) -> Callable[..., Form]:
    """
    Create a form owned by `owner`.

    `prices` gives one item per entry; each item gets one document.
    """
    def _make(
        owner: User,
        client_name: str = "John Doe",
        status: FormStatus = FormStatus.DRAFT,
        prices: tuple = ("150",),
    ) -> Form:
        form = Form(
            organization_id=owner.organization_id,
            created_by_user_id=owner.id,
            client_name=client_name,
            email=owner.email,
            status=status.value,
            items=[
                InsuranceItem(
                    insurance_type=InsuranceType.HOUSEHOLD.value,
                    package=PackageTier.COMFORT.value,
                    request_type=RequestType.NEW_POLICY.value,
                    duration="1 year",
                    price=price,
                    documents=[Document(name=f"doc-{i}.pdf", file_url=f"/uploads/doc-{i}.pdf")],
                )
                for i, price in enumerate(prices)
            ],
        )
        db.add(form)
        db.commit()
        return form

    return _make


# =============================================================================
# Auth Fixtures
# =============================================================================

@dataclass
class TestAuth:
    """Test authentication context."""
    user: User
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


def _auth_for(user: User) -> TestAuth:
    token = create_session_token(
        user_id=user.id,
        org_id=user.organization_id,
        role=user.role,
        token_version=user.token_version,
        email=user.email,
        full_name=user.full_name,
    )
    return TestAuth(user=user, token=token)


@pytest.fixture(scope="function")
def admin_auth(admin_user: User) -> TestAuth:
    return _auth_for(admin_user)


@pytest.fixture(scope="function")
def client_auth(client_user: User) -> TestAuth:
    return _auth_for(client_user)


@pytest.fixture(scope="function")
def other_client_auth(other_client_user: User) -> TestAuth:
    return _auth_for(other_client_user)


@pytest.fixture(scope="function")
def foreign_admin_auth(foreign_admin_user: User) -> TestAuth:
    return _auth_for(foreign_admin_user)


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """
    Unauthenticated AsyncClient bound to the test database.

    Pass `headers=auth.headers` per request to act as a user.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
