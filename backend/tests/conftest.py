"""Shared test fixtures."""

import os

# Settings are read at import time; configure before importing the app.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-jwt-secret-with-at-least-32-bytes!"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["REDIS_URL"] = ""
os.environ["RUN_MIGRATIONS"] = "false"
os.environ["SMTP_USER"] = ""
os.environ["SMTP_PASSWORD"] = ""
os.environ["WEBHOOK_SECRET"] = "whsec-test"
os.environ["EXPOSE_RESET_TOKEN"] = "false"

import uuid  # noqa: E402
from contextlib import asynccontextmanager  # noqa: E402
from datetime import UTC, datetime, timedelta  # noqa: E402
from unittest.mock import patch  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from cvbuilder.audit.models import AuditLog  # noqa: E402
from cvbuilder.auth.models import SubscriptionTier, User  # noqa: E402
from cvbuilder.auth.service import create_access_token, hash_password  # noqa: E402
from cvbuilder.cv.models import CV, CVTemplate  # noqa: E402
from cvbuilder.database.base import Base, get_db  # noqa: E402
from cvbuilder.notifications.models import NotificationLog  # noqa: E402
from cvbuilder.subscription.models import WebhookEvent  # noqa: E402

# Models must be imported so Base.metadata.create_all() sees all tables.
_ALL_MODELS = [AuditLog, NotificationLog, WebhookEvent]

PASSWORD = "Password123"


@pytest.fixture
def db_session():
    """In-memory SQLite database, one per test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestSession = sessionmaker(bind=engine)
    session = TestSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def make_user(db_session):
    def _make(
        email: str | None = None,
        password: str = PASSWORD,
        subscription: SubscriptionTier = SubscriptionTier.FREE,
        expiry: datetime | None = None,
        name: str = "Test User",
    ) -> User:
        user = User(
            id=uuid.uuid4(),
            name=name,
            email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
            password_hash=hash_password(password),
            subscription=subscription,
            subscription_expiry=expiry,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def test_user(make_user):
    return make_user(email="test@example.com")


@pytest.fixture
def premium_user(make_user):
    return make_user(
        email="premium@example.com",
        subscription=SubscriptionTier.PREMIUM,
        expiry=datetime.now(UTC) + timedelta(days=30),
    )


@pytest.fixture
def make_cv(db_session):
    def _make(user: User, title: str = "My CV", **fields) -> CV:
        cv = CV(
            id=uuid.uuid4(),
            user_id=user.id,
            title=title,
            template=fields.pop("template", CVTemplate.MODERN),
            personal_info=fields.pop("personal_info", {"fullName": "Test User", "email": user.email}),
            **fields,
        )
        db_session.add(cv)
        user.created_cvs = (user.created_cvs or 0) + 1
        db_session.commit()
        return cv

    return _make


@pytest.fixture
def test_cv(make_cv, test_user):
    return make_cv(
        test_user,
        summary="Backend engineer with a focus on APIs.",
        skills=[{"name": "Python", "level": 5}, {"name": "AWS", "level": 4}],
    )


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _headers


@pytest.fixture
def app_client(db_session):
    """TestClient bound to the per-test SQLite session, lifespan skipped."""
    from cvbuilder.main import create_app

    @asynccontextmanager
    async def _test_lifespan(app):
        yield

    def _test_db():
        yield db_session

    with patch("cvbuilder.main.lifespan", _test_lifespan):
        app = create_app()
    app.dependency_overrides[get_db] = _test_db
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
