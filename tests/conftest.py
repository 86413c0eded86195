"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database built from the ORM metadata (tables emptied after each test)
- Organizations and users with ADMIN / MEMBER / VIEWER memberships
- RequestContext builder for service-level tests
- JWT token minting and HTTPX AsyncClient factories for API tests
"""
import os

# Must be set before any buildcost import reads settings
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["TESTING"] = "1"
os.environ["ENV"] = "test"

import uuid
from dataclasses import dataclass
from typing import AsyncGenerator, Generator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from buildcost.core.deps import COOKIE_NAME, get_db
from buildcost.core.security import create_session_token
from buildcost.db.base import Base
from buildcost.db.enums import OrganizationType, Role
from buildcost.db.models import Membership, Organization, User
from buildcost.db.session import SessionLocal, engine
from buildcost.main import app
from buildcost.schemas.auth import RequestContext


CSRF_HEADERS = {"X-Requested-With": "XMLHttpRequest"}


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="session", autouse=True)
def _schema() -> Generator[None, None, None]:
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Database session shared by the test and the app under test.

    App code commits, so isolation comes from emptying every table afterwards.
    """
    session = SessionLocal()
    yield session
    session.rollback()
    session.close()
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


# =============================================================================
# Tenant Fixtures
# =============================================================================

def make_org(db: Session, name: str = "Test Organization", org_type=OrganizationType.CONTRACTOR):
    org = Organization(name=name, type=org_type.value)
    db.add(org)
    db.flush()
    return org


def make_user(db: Session, org: Organization | None = None, role: Role = Role.MEMBER) -> User:
    user = User(
        email=f"user-{uuid.uuid4().hex[:8]}@test.com",
        display_name="Test User",
    )
    db.add(user)
    db.flush()
    if org is not None:
        db.add(Membership(user_id=user.id, organization_id=org.id, role=role.value))
        db.flush()
    return user


def context_for(db: Session, user: User, org: Organization | None = None) -> RequestContext:
    """RequestContext as get_request_context would build it."""
    memberships = {
        m.organization_id: Role(m.role)
        for m in db.query(Membership).filter(Membership.user_id == user.id)
    }
    return RequestContext(
        user_id=user.id,
        active_org_id=org.id if org else None,
        memberships=memberships,
    )


@pytest.fixture(scope="function")
def test_org(db: Session) -> Organization:
    """A CONTRACTOR organization."""
    return make_org(db)


@pytest.fixture(scope="function")
def store_org(db: Session) -> Organization:
    return make_org(db, "Test Store", OrganizationType.STORE)


@pytest.fixture(scope="function")
def test_user(db: Session, test_org: Organization) -> User:
    """ADMIN of test_org."""
    return make_user(db, test_org, Role.ADMIN)


@pytest.fixture(scope="function")
def member_user(db: Session, test_org: Organization) -> User:
    return make_user(db, test_org, Role.MEMBER)


@pytest.fixture(scope="function")
def viewer_user(db: Session, test_org: Organization) -> User:
    return make_user(db, test_org, Role.VIEWER)


@pytest.fixture(scope="function")
def admin_ctx(db: Session, test_user: User, test_org: Organization) -> RequestContext:
    return context_for(db, test_user, test_org)


@pytest.fixture(scope="function")
def member_ctx(db: Session, member_user: User, test_org: Organization) -> RequestContext:
    return context_for(db, member_user, test_org)


@pytest.fixture(scope="function")
def viewer_ctx(db: Session, viewer_user: User, test_org: Organization) -> RequestContext:
    return context_for(db, viewer_user, test_org)


# =============================================================================
# Auth Fixtures
# =============================================================================

@dataclass
class TestAuth:
    """Test authentication context."""
    user: User
    org: Organization
    token: str
    cookie_name: str = COOKIE_NAME


@pytest.fixture(scope="function")
def test_auth(test_user: User, test_org: Organization) -> TestAuth:
    """Create JWT token for test user."""
    token = create_session_token(
        user_id=test_user.id,
        org_id=test_org.id,
        token_version=test_user.token_version,
    )
    return TestAuth(user=test_user, org=test_org, token=token)


# =============================================================================
# Client Fixtures
# =============================================================================

def _override_db(db: Session):
    def override_get_db():
        # Test setup is committed so only the request's own work can be discarded
        db.commit()
        try:
            yield db
        finally:
            # Mirrors closing a request session: uncommitted work is discarded
            db.rollback()

    return override_get_db


@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated AsyncClient."""
    app.dependency_overrides[get_db] = _override_db(db)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def authed_client(db: Session, test_auth: TestAuth) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient for the test_org ADMIN with JWT cookie and CSRF header."""
    app.dependency_overrides[get_db] = _override_db(db)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies={test_auth.cookie_name: test_auth.token},
        headers=CSRF_HEADERS,
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def client_for(db: Session):
    """
    Factory: client_for(user, org) -> AsyncClient authenticated as user with
    org as the active organization.
    """
    app.dependency_overrides[get_db] = _override_db(db)
    clients: list[AsyncClient] = []

    def _make(user: User, org: Organization | None = None) -> AsyncClient:
        token = create_session_token(
            user_id=user.id,
            org_id=org.id if org else None,
            token_version=user.token_version,
        )
        c = AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            cookies={COOKIE_NAME: token},
            headers=CSRF_HEADERS,
        )
        clients.append(c)
        return c

    yield _make

    for c in clients:
        await c.aclose()
    app.dependency_overrides.clear()
