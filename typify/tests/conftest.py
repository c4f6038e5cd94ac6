import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["COOKIE_SECURE"] = "false"
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id"
os.environ["GOOGLE_CLIENT_SECRET"] = "test-client-secret"
os.environ["OPENAI_API_KEY"] = "test-openai-key"
os.environ["SUPERADMIN_EMAIL"] = "admin@typify.test"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["SESSION_SECRET"] = "test-session-secret"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from typify.db import get_db
from typify.main import app
from typify.models import Base, User
from typify.security.auth import create_user_token

engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)

@event.listens_for(engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        values = {
            "email": f"user{counter['n']}@example.com",
            "name": f"User {counter['n']}",
            "google_id": f"google-{counter['n']}",
            "plan": "free",
            "monthly_posts_used": 0,
            "monthly_posts_limit": 10,
            "onboarding_completed": True,
            "selected_platform": "twitter",
            "language": "en",
            "timezone": "UTC",
            "notification_prefs": {},
        }
        values.update(overrides)
        user = User(**values)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make

@pytest.fixture
def user(make_user):
    return make_user()

@pytest.fixture
def superadmin(make_user):
    return make_user(email="admin@typify.test", name="Admin", is_superadmin=True)

@pytest.fixture
def auth_for():
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_user_token(user)}"}
    return _headers

@pytest.fixture
def headers(user, auth_for):
    return auth_for(user)
