"""Credential endpoints are throttled per client and path."""
import pytest
from httpx import ASGITransport, AsyncClient

from app.core.config import settings
from app.dependencies.rate_limit import reset_rate_limits


@pytest.fixture
def tight_rate_limit(monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(settings, "RATE_LIMIT_REQUESTS", 2)
    monkeypatch.setattr(settings, "RATE_LIMIT_PERIOD_SECONDS", 60)
    reset_rate_limits()
    yield
    reset_rate_limits()


def _client_from(app, host):
    transport = ASGITransport(app=app, client=(host, 51000))
    return AsyncClient(transport=transport, base_url="http://testserver")


async def test_login_is_rate_limited(app, tight_rate_limit):
    body = {"username": "nobody-here", "password": "wrongpass"}

    async with _client_from(app, "203.0.113.7") as client:
        for _ in range(2):
            r = await client.post("/api/login", json=body)
            assert r.status_code == 401

        r = await client.post("/api/login", json=body)
        assert r.status_code == 429

    # Other clients keep their own budget
    async with _client_from(app, "203.0.113.8") as other:
        r = await other.post("/api/login", json=body)
        assert r.status_code == 401


async def test_forwarded_header_does_not_reset_budget(app, tight_rate_limit):
    body = {"username": "nobody-here", "password": "wrongpass"}

    async with _client_from(app, "203.0.113.9") as client:
        codes = []
        for i in range(5):
            r = await client.post(
                "/api/login", json=body, headers={"X-Forwarded-For": f"198.51.100.{i}"}
            )
            codes.append(r.status_code)

    assert codes == [401, 401, 429, 429, 429]
