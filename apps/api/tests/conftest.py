"""
Test configuration and fixtures.

Provides:
- Fresh schema per test (SQLite file database by default, override with
  TEST_DATABASE_URL to run against PostgreSQL)
- db session and session_factory for sweeps that open their own sessions
- In-memory email sender
- JWT token minting and HTTPX AsyncClient with proper headers
"""
import os
import tempfile
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import AsyncGenerator, Generator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

_TEST_DB_DIR = tempfile.mkdtemp(prefix="crm-api-tests-")
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL", f"sqlite:///{_TEST_DB_DIR}/test.db"
)
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["RESEND_API_KEY"] = ""

from app.core.deps import COOKIE_NAME, CSRF_HEADER, CSRF_HEADER_VALUE, get_db  # noqa: E402
from app.core.security import create_session_token  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.enums import RecordType, Role  # noqa: E402
from app.db.models import User  # noqa: E402
from app.db.session import SessionLocal, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.services import record_service  # noqa: E402
from app.services.email_sender import EmailSendError, set_email_sender  # noqa: E402


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def db_engine():
    return engine


@pytest.fixture(autouse=True)
def schema(db_engine) -> Generator[None, None, None]:
    """Create all tables before each test and drop them afterwards."""
    Base.metadata.create_all(db_engine)
    yield
    Base.metadata.drop_all(db_engine)


@pytest.fixture(scope="function")
def session_factory():
    return SessionLocal


@pytest.fixture(scope="function")
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@dataclass
class RecordingEmailSender:
    """Keeps messages in memory instead of calling the provider."""

    sent: list[dict] = field(default_factory=list)
    fail: bool = False

    def send(self, to: list[str], subject: str, html: str) -> None:
        if self.fail:
            raise EmailSendError("Simulated send failure")
        self.sent.append({"to": list(to), "subject": subject, "html": html})


@pytest.fixture(autouse=True)
def sent_emails() -> Generator[RecordingEmailSender, None, None]:
    """Capture outgoing email instead of calling the provider."""
    sender = RecordingEmailSender()
    set_email_sender(sender)
    yield sender
    set_email_sender(None)


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


# =============================================================================
# Users
# =============================================================================

def make_user(db: Session, role: Role, name: str | None = None) -> User:
    user = User(
        id=uuid.uuid4(),
        email=f"{role.value}-{uuid.uuid4().hex[:8]}@test.com",
        display_name=name or f"{role.value} user",
        role=role.value,
        token_version=1,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def recruiter(db: Session) -> User:
    return make_user(db, Role.RECRUITER, "Rita Recruiter")


@pytest.fixture
def reviewer(db: Session) -> User:
    return make_user(db, Role.PAYROLL, "Pat Payroll")


# =============================================================================
# Record helpers
# =============================================================================

@pytest.fixture
def make_record(db: Session):
    """Create a numbered record through the service (allocates its number)."""

    def _make(record_type: RecordType, **fields):
        defaults = {
            RecordType.ORGANIZATION: {"name": "Acme Staffing"},
            RecordType.HIRING_MANAGER: {"first_name": "Hana", "last_name": "Manager"},
            RecordType.JOB: {"title": "Forklift Operator"},
            RecordType.LEAD: {"first_name": "Leo", "last_name": "Lead"},
            RecordType.PLACEMENT: {},
            RecordType.TASK: {"title": "Call back"},
            RecordType.JOB_SEEKER: {"first_name": "Jo", "last_name": "Seeker"},
        }
        values = {**defaults[record_type], **fields}
        return record_service.create_record(db, record_type, values)

    return _make


# =============================================================================
# Auth / Client Fixtures
# =============================================================================

@dataclass
class TestAuth:
    """Test authentication context."""
    user: User
    token: str
    cookie_name: str = COOKIE_NAME


def auth_for(user: User) -> TestAuth:
    token = create_session_token(
        user_id=user.id,
        role=user.role,
        token_version=user.token_version,
    )
    return TestAuth(user=user, token=token)


@asynccontextmanager
async def client_for(db: Session, user: User | None = None):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    cookies = {COOKIE_NAME: auth_for(user).token} if user else {}

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies=cookies,
        headers={CSRF_HEADER: CSRF_HEADER_VALUE},
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated AsyncClient (internal cron endpoints)."""
    async with client_for(db) as c:
        yield c


@pytest.fixture(scope="function")
async def authed_client(db: Session, recruiter: User) -> AsyncGenerator[AsyncClient, None]:
    async with client_for(db, recruiter) as c:
        yield c


@pytest.fixture(scope="function")
async def reviewer_client(db: Session, reviewer: User) -> AsyncGenerator[AsyncClient, None]:
    async with client_for(db, reviewer) as c:
        yield c
