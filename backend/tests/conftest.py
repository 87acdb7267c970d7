"""
Pytest configuration and fixtures for backend tests.
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Set test environment variables before importing config
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["CORS_ORIGINS"] = "http://localhost:3000,http://localhost:5173"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["AUTO_CREATE_DB"] = "false"
os.environ.pop("SENTRY_DSN", None)

from models.access import Actor, ActorRole  # noqa: E402
from models.config import settings  # noqa: E402
from models.exceptions import AuditTrailUnavailableException  # noqa: E402
from models.moderation_types import AppealCause, PostTarget  # noqa: E402
from models.schemas import AuditEntry  # noqa: E402
from repositories.database import Base, get_db  # noqa: E402
import repositories.db_models as db_models  # noqa: E402

# Test database engine (in-memory SQLite)
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeAuditTrail:
    """In-memory audit sink that records every appended entry."""

    def __init__(self):
        self.entries: list[AuditEntry] = []

    def append(self, entry: AuditEntry) -> None:
        self.entries.append(entry)

    def categories(self) -> list[str]:
        return [entry.action_category for entry in self.entries]


class FailingAuditTrail:
    """Audit sink that is always unavailable."""

    def __init__(self):
        self.attempts = 0

    def append(self, entry: AuditEntry) -> None:
        self.attempts += 1
        raise AuditTrailUnavailableException()


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh in-memory database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db(db_session):
    """Alias for db_session."""
    return db_session


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with overridden database dependency."""
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def audit_trail() -> FakeAuditTrail:
    """Recording audit sink."""
    return FakeAuditTrail()


@pytest.fixture
def failing_audit_trail() -> FailingAuditTrail:
    """Audit sink that raises on every append."""
    return FailingAuditTrail()


# ============================================================================
# Actors
# ============================================================================


@pytest.fixture
def member() -> Actor:
    """A regular member."""
    return Actor(id="m1", role=ActorRole.MEMBER)


@pytest.fixture
def other_member() -> Actor:
    """A second member who owns nothing of member's."""
    return Actor(id="m2", role=ActorRole.MEMBER)


@pytest.fixture
def moderator() -> Actor:
    """A moderator."""
    return Actor(id="mod1", role=ActorRole.MODERATOR)


@pytest.fixture
def administrator() -> Actor:
    """An administrator."""
    return Actor(id="admin1", role=ActorRole.ADMINISTRATOR)


def mint_token(claims: dict, lifetime: timedelta = timedelta(minutes=30)) -> str:
    """Sign a token the way the identity service does."""
    payload = dict(claims, exp=datetime.now(timezone.utc) + lifetime)
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def auth_headers_for(actor: Actor) -> dict:
    """Build bearer headers for an actor."""
    token = mint_token({"sub": actor.id, "role": actor.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token_factory():
    """Sign arbitrary claims, e.g. to build expired or malformed tokens."""
    return mint_token


@pytest.fixture
def member_headers(member) -> dict:
    """Bearer headers for member."""
    return auth_headers_for(member)


@pytest.fixture
def other_member_headers(other_member) -> dict:
    """Bearer headers for other_member."""
    return auth_headers_for(other_member)


@pytest.fixture
def moderator_headers(moderator) -> dict:
    """Bearer headers for moderator."""
    return auth_headers_for(moderator)


@pytest.fixture
def admin_headers(administrator) -> dict:
    """Bearer headers for administrator."""
    return auth_headers_for(administrator)


# ============================================================================
# Records
# ============================================================================


@pytest.fixture
def test_report(db_session, member) -> db_models.ContentReport:
    """Create a pending report by member on post p1."""
    from services.report_service import ReportService

    return ReportService.create_report(
        db_session, member.id, PostTarget("p1"), "spam"
    )


@pytest.fixture
def test_appeal(db_session, member, test_report) -> db_models.Appeal:
    """Create a pending appeal by member against test_report."""
    from services.appeal_service import AppealService

    return AppealService.create_appeal(
        db_session,
        member,
        member.id,
        AppealCause.of(flag_report_id=test_report.id),
        "false positive",
    )
