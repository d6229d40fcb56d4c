"""Shared test fixtures and configuration."""
import os

# Point the application at SQLite before any app module builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.main import app  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import enable_sqlite_foreign_keys  # noqa: E402
from app.api.deps import get_db  # noqa: E402
from app.core.cache import global_cache  # noqa: E402
from app.core.security import MemberContext  # noqa: E402
from tests.utils import auth_headers  # noqa: E402


# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(autouse=True)
def disable_rate_limiting_for_tests(request):
    """Disable rate limiting for all tests except rate limiting tests."""
    from app.core.rate_limit import limiter

    limiter.reset()
    if "rate_limit" in request.keywords:
        yield
    else:
        limiter.enabled = False
        try:
            yield
        finally:
            limiter.enabled = True
    limiter.reset()


@pytest.fixture(autouse=True)
def clear_polls_cache():
    """Each test starts with an empty poll cache."""
    global_cache.clear()
    yield
    global_cache.clear()


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh database for each test."""
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a new database session for a test."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with a test database."""
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
def member():
    """The member making most requests in a test."""
    return MemberContext(user_id="user-alice", name="Alice Martin", image="https://example.org/alice.png")


@pytest.fixture
def other_member():
    """A second member, for ownership and multi-voter tests."""
    return MemberContext(user_id="user-bob", name="Bob Durand")


@pytest.fixture
def member_client(client, member):
    """Create a test client that sends the member's session token."""
    client.headers.update(auth_headers(member))
    return client
