"""
Shared pytest fixtures.

Every test gets a fresh in-memory SQLite database with all tables created,
and a real session with autoflush=False, matching production.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clubhouse.config import settings
from clubhouse.constants.roles import UserType
from clubhouse.database.session import enable_sqlite_savepoints, get_db_session
from clubhouse.db_base import Base
from clubhouse.models.user import MEMBERSHIP_STATUS_MEMBER, MEMBERSHIP_STATUS_NON_MEMBER, User
from clubhouse.platform.auth_context import ActorContext
from clubhouse.platform.security import create_session_token, hash_password
from clubhouse.services.dashboard_service import reset_daily_expiry_check

TEST_PASSWORD = "secret-password"
TEST_SESSION_SECRET = "clubhouse-test-session-secret-0123456789"


# ============================================================================
# DATABASE
# ============================================================================

@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(eng)
    import clubhouse.models  # noqa: F401
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def db(engine):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def _session_secret(monkeypatch):
    """Sign test sessions with a full-length key."""
    monkeypatch.setattr(settings, "SESSION_SECRET_KEY", TEST_SESSION_SECRET)


@pytest.fixture(autouse=True)
def _reset_dashboard_expiry_check():
    reset_daily_expiry_check()
    yield
    reset_daily_expiry_check()


# ============================================================================
# FACTORIES
# ============================================================================

@pytest.fixture
def make_user(db):
    """Factory creating a flushed user with the given role."""
    counter = {"n": 0}

    def _make(role: UserType = UserType.NON_MEMBER, name: str = None, email: str = None, **kwargs) -> User:
        counter["n"] += 1
        n = counter["n"]
        user_type = UserType(role)
        membership_status = kwargs.pop(
            "membership_status",
            MEMBERSHIP_STATUS_MEMBER if user_type is UserType.MEMBER else MEMBERSHIP_STATUS_NON_MEMBER,
        )
        user = User(
            name=name or f"{user_type.label} {n}",
            email=email or f"{user_type.value}{n}@example.com",
            password_hash=hash_password(TEST_PASSWORD),
            role=user_type.value,
            membership_status=membership_status,
            **kwargs,
        )
        db.add(user)
        db.flush()
        return user

    return _make


@pytest.fixture
def admin(make_user):
    return make_user(UserType.ADMIN, name="Alice Admin", email="admin@example.com")


@pytest.fixture
def staff(make_user):
    return make_user(UserType.STAFF, name="Sam Staff", email="staff@example.com")


@pytest.fixture
def member(make_user):
    return make_user(UserType.MEMBER, name="Maria Member", email="member@example.com")


@pytest.fixture
def non_member(make_user):
    return make_user(UserType.NON_MEMBER, name="Nate Visitor", email="visitor@example.com")


@pytest.fixture
def student(make_user):
    return make_user(UserType.STUDENT, name="Stella Student", email="student@example.com")


@pytest.fixture
def system_actor():
    return ActorContext.system()


@pytest.fixture
def actor_for():
    """Build the actor context for a user acting from a fixed address."""

    def _actor(user, ip_address: str = "203.0.113.7") -> ActorContext:
        return ActorContext(user_id=user.id, ip_address=ip_address)

    return _actor


# ============================================================================
# HTTP
# ============================================================================

@pytest.fixture
def app(db):
    """Application wired to the test session."""
    from clubhouse.main import create_app

    application = create_app()

    def _override_db():
        yield db

    application.dependency_overrides[get_db_session] = _override_db
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers():
    """Bearer header for a user."""

    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {create_session_token(user.id)}"}

    return _headers
