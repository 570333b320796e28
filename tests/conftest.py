"""Pytest fixtures for async FastAPI testing.

Loads `.env.test`, initializes a clean test database, and provides an
`AsyncClient` for integration tests. Redis is replaced by an in-memory
dict so tests don't require a running server.
"""
import os
import pathlib
import uuid

import pytest
from dotenv import load_dotenv

# Settings are read at import time, so the test env must be in place first
_root = pathlib.Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=str(_root / ".env.test"))
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("RATE_LIMIT_ENABLED", "False")


class MockRedis:
    def __init__(self):
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ttl=3600):
        self.store[key] = value

    async def delete(self, key):
        self.store.pop(key, None)

    async def ping(self):
        return True


@pytest.fixture(autouse=True)
def mock_redis(monkeypatch):
    """Swap the Redis-backed cache calls for an in-memory store."""
    from app.cache.cache_service import redis_cache

    fake = MockRedis()
    monkeypatch.setattr(redis_cache, "get", fake.get)
    monkeypatch.setattr(redis_cache, "set", fake.set)
    monkeypatch.setattr(redis_cache, "delete", fake.delete)
    monkeypatch.setattr(redis_cache, "ping", fake.ping)
    return fake


@pytest.fixture(scope="session")
def prepare_database():
    """Create clean schema for the test session."""
    from app.core.database import engine, Base

    # Drop / create all tables to ensure clean DB
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    yield

    # Teardown: drop all tables
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(prepare_database):
    """Yield a SQLAlchemy session for direct DB access in tests."""
    from app.core.database import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def app(prepare_database):
    from app.main import create_app

    return create_app()


@pytest.fixture
async def async_client(app):
    """Provide an httpx AsyncClient configured with the FastAPI app."""
    from httpx import ASGITransport, AsyncClient

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client


def unique_username(prefix: str = "user") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@pytest.fixture
def register_user(async_client):
    """Register through the API; returns (user id, bearer headers, access token)."""

    async def _register(username=None, password="secret123"):
        username = username or unique_username()
        r = await async_client.post(
            "/api/register",
            json={"username": username, "password": password, "confirmPassword": password},
        )
        assert r.status_code == 201, r.text
        tokens = r.json()
        headers = {"Authorization": f"Bearer {tokens['access_token']}"}
        return tokens["user_id"], headers, tokens["access_token"]

    return _register


@pytest.fixture
def make_user(db_session):
    """Create a user row directly (no tokens) for service-level tests."""
    from app.core.security import hash_password
    from app.models.user import User

    def _make(username=None):
        user = User(username=username or unique_username(), password_hash=hash_password("secret123"))
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def make_connection(db_session):
    from app.services.connection_service import ConnectionService

    def _make(user_id, **fields):
        payload = {"name": "Workstation", "host": "192.168.1.10", "port": 3389, "os": "Windows"}
        payload.update(fields)
        return ConnectionService.create_connection(db_session, user_id=user_id, payload=payload)

    return _make
