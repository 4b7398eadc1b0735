"""
Pytest configuration and fixtures for backend tests.
"""

import os
import sys
from pathlib import Path

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
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["http://localhost:3000"]'

import repositories.db_models as db_models  # noqa: E402
from authentication.auth import create_access_token, get_password_hash  # noqa: E402
from repositories.database import Base, enable_sqlite_foreign_keys, get_db  # noqa: E402
from repositories.db_models import ReportReason, Role  # noqa: E402
from repositories.user_repository import UserRepository  # noqa: E402

# Test database engine (in-memory SQLite)
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

POST_CONTENT = "This is a question body that is long enough to pass validation."
COMMENT_CONTENT = "Here is an answer that explains the solution."


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


@pytest.fixture(autouse=True)
def _reset_maintenance_cache():
    from services.maintenance_service import clear_maintenance_cache

    clear_maintenance_cache()
    yield
    clear_maintenance_cache()


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with overridden database dependency."""
    from helpers.rate_limiter import limiter
    from main import app

    # Reset rate limiter storage before each test to prevent rate limit errors
    limiter.reset()

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============================================================================
# Users
# ============================================================================


@pytest.fixture
def user_factory(db_session):
    """Create users on demand: user_factory("carol", roles={Role.MODERATOR})."""

    def create(
        username: str,
        roles: set[Role] | None = None,
        password: str = "password123",
        reputation: int = 0,
        is_active: bool = True,
    ) -> db_models.User:
        user = db_models.User(
            email=f"{username}@forum.io",
            username=username,
            display_name=username.capitalize(),
            hashed_password=get_password_hash(password),
            reputation=reputation,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.flush()
        if roles:
            UserRepository(db_session).set_roles(user, roles)
        db_session.commit()
        db_session.refresh(user)
        return user

    return create


@pytest.fixture
def test_user(user_factory) -> db_models.User:
    """Create a plain user who authors the test post."""
    return user_factory("alice")


@pytest.fixture
def other_user(user_factory) -> db_models.User:
    """Create a second plain user."""
    return user_factory("bob")


@pytest.fixture
def moderator_user(user_factory) -> db_models.User:
    return user_factory("mod", roles={Role.MODERATOR})


@pytest.fixture
def admin_user(user_factory) -> db_models.User:
    return user_factory("admin", roles={Role.ADMIN})


def headers_for(user: db_models.User) -> dict:
    token = create_access_token(data={"sub": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_factory():
    """Build bearer headers for any user."""
    return headers_for


@pytest.fixture
def auth_headers(test_user) -> dict:
    """Get authentication headers for test user."""
    return headers_for(test_user)


@pytest.fixture
def other_auth_headers(other_user) -> dict:
    return headers_for(other_user)


@pytest.fixture
def moderator_headers(moderator_user) -> dict:
    return headers_for(moderator_user)


@pytest.fixture
def admin_headers(admin_user) -> dict:
    return headers_for(admin_user)


# ============================================================================
# Content
# ============================================================================


@pytest.fixture
def test_tag(db_session) -> db_models.Tag:
    """Create a test tag."""
    tag = db_models.Tag(name="python", slug="python", description="Python questions")
    db_session.add(tag)
    db_session.commit()
    db_session.refresh(tag)
    return tag


@pytest.fixture
def post_factory(db_session, test_tag):
    """Create posts through PostService."""
    from services.post_service import PostService

    def create(author: db_models.User, title: str = "How do I parse JSON?") -> db_models.Post:
        return PostService.create_post(
            db_session, author.id, title, POST_CONTENT, [test_tag.id]
        )

    return create


@pytest.fixture
def test_post(post_factory, test_user) -> db_models.Post:
    """Create a visible post authored by test_user."""
    return post_factory(test_user)


@pytest.fixture
def comment_factory(db_session):
    """Create comments through CommentService."""
    from services.comment_service import CommentService

    def create(
        post: db_models.Post,
        author: db_models.User,
        content: str = COMMENT_CONTENT,
        parent_id: int | None = None,
    ) -> db_models.Comment:
        return CommentService.create_comment(
            db_session, post.id, author.id, content, parent_id
        )

    return create


@pytest.fixture
def test_comment(comment_factory, test_post, other_user) -> db_models.Comment:
    """Create an answer by other_user on test_post."""
    return comment_factory(test_post, other_user)


@pytest.fixture
def report_factory(db_session):
    """Create pending reports through ReportService."""
    from services.report_service import ReportService

    def create(
        reporter: db_models.User,
        post: db_models.Post | None = None,
        comment: db_models.Comment | None = None,
        reason: ReportReason = ReportReason.SPAM,
    ) -> db_models.Report:
        return ReportService.create_report(
            db_session,
            reporter.id,
            reason,
            description="This looks like spam to me",
            post_id=post.id if post is not None else None,
            comment_id=comment.id if comment is not None else None,
        )

    return create
