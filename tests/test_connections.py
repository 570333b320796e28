"""Integration tests for the connection endpoints."""


CONNECTION = {
    "name": "Development Workstation",
    "host": "192.168.1.100",
    "port": 3389,
    "os": "Windows",
    "credentials": {"username": "dev", "password": "hunter2", "rememberPassword": True},
}


async def test_create_and_list_connections(async_client, register_user):
    user_id, headers, _ = await register_user()

    # Owner and status in the body are ignored
    r = await async_client.post(
        "/api/connections",
        json={**CONNECTION, "userId": 999999, "status": "online"},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    created = r.json()
    assert created["userId"] == user_id
    assert created["status"] == "offline"
    assert created["lastAccessed"]
    assert created["credentials"] == {"username": "dev", "rememberPassword": True}

    r = await async_client.get("/api/connections", headers=headers)
    assert r.status_code == 200
    rows = r.json()
    assert [c["id"] for c in rows] == [created["id"]]


async def test_create_connection_defaults_port(async_client, register_user):
    _, headers, _ = await register_user()

    r = await async_client.post(
        "/api/connections",
        json={"name": "Build box", "host": "10.0.0.9", "os": "Linux"},
        headers=headers,
    )
    assert r.status_code == 201
    assert r.json()["port"] == 3389


async def test_create_connection_validation(async_client, register_user):
    _, headers, _ = await register_user()

    r = await async_client.post("/api/connections", json={"host": "10.0.0.1"}, headers=headers)
    assert r.status_code == 400
    assert "name" in r.json()["detail"]

    r = await async_client.post(
        "/api/connections",
        json={"name": "Bad", "host": "10.0.0.1", "port": 70000},
        headers=headers,
    )
    assert r.status_code == 400

    r = await async_client.post(
        "/api/connections",
        json={"name": "Bad", "host": "10.0.0.1", "os": "BeOS"},
        headers=headers,
    )
    assert r.status_code == 400


async def test_connections_are_owner_scoped(async_client, register_user):
    _, alice, _ = await register_user()
    _, bob, _ = await register_user()

    r = await async_client.post("/api/connections", json=CONNECTION, headers=alice)
    connection_id = r.json()["id"]

    r = await async_client.get("/api/connections", headers=bob)
    assert r.json() == []

    r = await async_client.get(f"/api/connections/{connection_id}", headers=bob)
    assert r.status_code == 403
    assert r.json() == {"detail": "Unauthorized access to connection"}

    r = await async_client.patch(f"/api/connections/{connection_id}", json={"name": "Mine"}, headers=bob)
    assert r.status_code == 403

    r = await async_client.delete(f"/api/connections/{connection_id}", headers=bob)
    assert r.status_code == 403

    r = await async_client.get(f"/api/connections/{connection_id}", headers=alice)
    assert r.status_code == 200
    assert r.json()["name"] == CONNECTION["name"]


async def test_missing_connection_is_404(async_client, register_user):
    _, headers, _ = await register_user()

    r = await async_client.get("/api/connections/987654", headers=headers)
    assert r.status_code == 404
    assert r.json() == {"detail": "Connection not found"}

    r = await async_client.delete("/api/connections/987654", headers=headers)
    assert r.status_code == 404


async def test_update_connection_merges_fields(async_client, register_user):
    _, headers, _ = await register_user()
    r = await async_client.post("/api/connections", json=CONNECTION, headers=headers)
    connection_id = r.json()["id"]

    r = await async_client.patch(
        f"/api/connections/{connection_id}",
        json={"name": "Renamed", "status": "away"},
        headers=headers,
    )
    assert r.status_code == 200
    body = r.json()
    assert body["name"] == "Renamed"
    assert body["status"] == "away"
    assert body["host"] == CONNECTION["host"]
    assert body["credentials"]["username"] == "dev"

    r = await async_client.patch(f"/api/connections/{connection_id}", json={"status": "busy"}, headers=headers)
    assert r.status_code == 400


async def test_delete_connection_removes_only_that_row(async_client, register_user):
    _, headers, _ = await register_user()
    first = (await async_client.post("/api/connections", json=CONNECTION, headers=headers)).json()
    second = (
        await async_client.post(
            "/api/connections",
            json={"name": "Production Server", "host": "10.0.0.15", "port": 22, "os": "Linux"},
            headers=headers,
        )
    ).json()

    r = await async_client.delete(f"/api/connections/{first['id']}", headers=headers)
    assert r.status_code == 204
    assert r.content == b""

    r = await async_client.get("/api/connections", headers=headers)
    assert [c["id"] for c in r.json()] == [second["id"]]

    r = await async_client.get(f"/api/connections/{first['id']}", headers=headers)
    assert r.status_code == 404


async def test_unauthenticated_create_is_rejected_before_validation(async_client, db_session):
    from app.models.connection import Connection

    async_client.cookies.clear()
    before = db_session.query(Connection).count()

    r = await async_client.post("/api/connections", json={"host": "missing-name"})
    assert r.status_code == 401
    assert r.json() == {"detail": "Not authenticated"}
    assert db_session.query(Connection).count() == before
