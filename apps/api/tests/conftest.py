"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database with savepoint isolation (rollback after each test)
- Organizations, users per role and their UserSession contexts
- HTTPX AsyncClient per role with session cookie and CSRF header
- Local blob storage under tmp_path
"""
import os
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator, Generator

# Configure the app for tests before anything imports settings
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("TESTING", "1")
os.environ.setdefault("ENV", "test")
os.environ.setdefault("JWT_SECRET", "test-secret-with-enough-length-for-hs256")
os.environ.setdefault("FERNET_KEY", "MDEyMzQ1Njc4OWFiY2RlZjAxMjM0NTY3ODlhYmNkZWY=")
os.environ.setdefault("INTERNAL_SECRET", "internal-test-secret")
os.environ.setdefault("STORAGE_BACKEND", "local")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from advisor_desk.core.config import settings
from advisor_desk.core.deps import COOKIE_NAME, get_db
from advisor_desk.core.security import create_session_token, hash_password
from advisor_desk.db.base import Base
from advisor_desk.db.enums import ClientType, Role
from advisor_desk.db.models import Client, Organization, User
from advisor_desk.db.session import engine
from advisor_desk.main import app
from advisor_desk.schemas.auth import UserSession

TEST_PASSWORD = "correct-horse-battery"
CSRF_HEADERS = {"X-Requested-With": "XMLHttpRequest"}


# =============================================================================
# Database Fixtures (Savepoint pattern)
# =============================================================================

@pytest.fixture(scope="session", autouse=True)
def create_schema() -> Generator[None, None, None]:
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Creates a database session inside an outer transaction.

    App code can call commit() and begin_nested(); commits release a
    savepoint and the outer transaction is rolled back at the end.
    """
    connection = engine.connect()
    transaction = connection.begin()
    session = Session(bind=connection, join_transaction_mode="create_savepoint")

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(autouse=True)
def local_storage(tmp_path, monkeypatch):
    """Keep blobs of each test in its own directory."""
    monkeypatch.setattr(settings, "STORAGE_BACKEND", "local")
    monkeypatch.setattr(settings, "LOCAL_STORAGE_PATH", str(tmp_path / "blobs"))
    return tmp_path / "blobs"


# =============================================================================
# Tenants, users and sessions
# =============================================================================

def make_org(db: Session, name: str = "Test Advisory", timezone: str = "Asia/Kolkata") -> Organization:
    org = Organization(
        id=uuid.uuid4(),
        name=name,
        slug=f"test-org-{uuid.uuid4().hex[:8]}",
        timezone=timezone,
    )
    db.add(org)
    db.flush()
    return org


def make_user(db: Session, org: Organization, role: Role, username: str | None = None) -> User:
    user = User(
        id=uuid.uuid4(),
        organization_id=org.id,
        username=username or f"{role.value}-{uuid.uuid4().hex[:6]}",
        full_name=f"Test {role.value.replace('_', ' ').title()}",
        password_hash=hash_password(TEST_PASSWORD),
        role=role.value,
        is_active=True,
        token_version=1,
    )
    db.add(user)
    db.flush()
    return user


def session_for(user: User, org: Organization) -> UserSession:
    return UserSession(
        user_id=user.id,
        org_id=org.id,
        role=Role(user.role),
        username=user.username,
        full_name=user.full_name,
        org_timezone=org.timezone,
    )


def make_client(db: Session, org: Organization, name: str = "Asha Mehta") -> Client:
    client = Client(organization_id=org.id, name=name, type=ClientType.HOLISTIC.value)
    db.add(client)
    db.flush()
    return client


@pytest.fixture
def test_org(db: Session) -> Organization:
    return make_org(db)


@pytest.fixture
def other_org(db: Session) -> Organization:
    return make_org(db, name="Other Advisory")


@pytest.fixture
def manager_user(db: Session, test_org: Organization) -> User:
    return make_user(db, test_org, Role.MANAGER)


@pytest.fixture
def editor_user(db: Session, test_org: Organization) -> User:
    return make_user(db, test_org, Role.ASSOCIATE_EDITOR)


@pytest.fixture
def viewer_user(db: Session, test_org: Organization) -> User:
    return make_user(db, test_org, Role.ASSOCIATE_VIEWER)


@pytest.fixture
def manager_session(manager_user: User, test_org: Organization) -> UserSession:
    return session_for(manager_user, test_org)


@pytest.fixture
def editor_session(editor_user: User, test_org: Organization) -> UserSession:
    return session_for(editor_user, test_org)


@pytest.fixture
def viewer_session(viewer_user: User, test_org: Organization) -> UserSession:
    return session_for(viewer_user, test_org)


@pytest.fixture
def test_client_record(db: Session, test_org: Organization) -> Client:
    return make_client(db, test_org)


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


def auth_for(user: User, org: Organization) -> TestAuth:
    token = create_session_token(
        user_id=user.id,
        org_id=org.id,
        role=user.role,
        token_version=user.token_version,
    )
    return TestAuth(user=user, org=org, token=token)


# =============================================================================
# Client Fixtures
# =============================================================================

@asynccontextmanager
async def _async_client(db: Session, auth: TestAuth | None = None):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    cookies = {auth.cookie_name: auth.token} if auth else None
    headers = CSRF_HEADERS if auth else None
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            cookies=cookies,
            headers=headers,
        ) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated AsyncClient for public endpoints."""
    async with _async_client(db) as c:
        yield c


@pytest.fixture
async def manager_client(db: Session, manager_user: User, test_org: Organization) -> AsyncGenerator[AsyncClient, None]:
    async with _async_client(db, auth_for(manager_user, test_org)) as c:
        yield c


@pytest.fixture
async def editor_client(db: Session, editor_user: User, test_org: Organization) -> AsyncGenerator[AsyncClient, None]:
    async with _async_client(db, auth_for(editor_user, test_org)) as c:
        yield c


@pytest.fixture
async def viewer_client(db: Session, viewer_user: User, test_org: Organization) -> AsyncGenerator[AsyncClient, None]:
    async with _async_client(db, auth_for(viewer_user, test_org)) as c:
        yield c
