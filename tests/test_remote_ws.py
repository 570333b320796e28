"""Viewer channel tests over a real WebSocket (Starlette TestClient)."""
import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from conftest import unique_username


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def _register(client):
    username = unique_username("viewer")
    r = client.post(
        "/api/register",
        json={"username": username, "password": "secret123", "confirmPassword": "secret123"},
    )
    assert r.status_code == 201, r.text
    tokens = r.json()
    return tokens["user_id"], tokens["access_token"]


def _create_connection(client, token):
    r = client.post(
        "/api/connections",
        json={"name": "Development Workstation", "host": "192.168.1.100", "port": 3389, "os": "Windows"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert r.status_code == 201, r.text
    return r.json()["id"]


def _receive_until(ws, event_type, limit=500):
    """Read events until one of the given type arrives; returns (event, skipped types)."""
    skipped = []
    for _ in range(limit):
        event = ws.receive_json()
        if event["type"] == event_type:
            return event, skipped
        skipped.append(event["type"])
    raise AssertionError(f"no {event_type} event within {limit} messages")


def test_initial_status_on_open(client):
    _, token = _register(client)
    with client.websocket_connect(f"/ws?token={token}") as ws:
        assert ws.receive_json() == {
            "type": "connectionStatus",
            "status": "connected",
            "quality": "Good",
            "latency": 25,
        }


def test_rejects_missing_or_bad_token(client):
    client.cookies.clear()
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws?token=not-a-jwt") as ws:
            ws.receive_json()


def test_connect_then_disconnect(client, db_session, mock_redis):
    user_id, token = _register(client)
    connection_id = _create_connection(client, token)

    with client.websocket_connect(f"/ws?token={token}") as ws:
        ws.receive_json()  # initial status

        ws.send_json({"type": "connect", "connectionId": connection_id})
        connected = ws.receive_json()
        assert connected["type"] == "connected"
        assert connected["connectionId"] == connection_id
        session_id = connected["sessionId"]
        assert mock_redis.store.get(f"presence:user:{user_id}") == str(session_id)
        r = client.get("/api/user", headers={"Authorization": f"Bearer {token}"})
        assert r.json()["active_session_id"] == session_id

        frame, _ = _receive_until(ws, "frame")
        assert isinstance(frame["timestamp"], int)

        r = client.get(f"/api/sessions/{session_id}", headers={"Authorization": f"Bearer {token}"})
        body = r.json()
        assert body["status"] == "active"
        assert body["protocol"] == "WebSocket"
        assert body["connection"]["status"] == "online"

        ws.send_json({"type": "disconnect"})
        _, skipped = _receive_until(ws, "disconnected")
        assert set(skipped) <= {"frame", "connectionStatus"}

        # Nothing follows the disconnected event; the server closes the socket
        with pytest.raises(WebSocketDisconnect):
            ws.receive_json()

    r = client.get(f"/api/sessions/{session_id}", headers={"Authorization": f"Bearer {token}"})
    body = r.json()
    assert body["status"] == "terminated"
    assert body["endTime"]
    assert body["connection"]["status"] == "offline"
    assert f"presence:user:{user_id}" not in mock_redis.store
    r = client.get("/api/user", headers={"Authorization": f"Bearer {token}"})
    assert r.json()["active_session_id"] is None


def test_reconnect_replaces_bound_session(client):
    _, token = _register(client)
    first_connection = _create_connection(client, token)
    second_connection = _create_connection(client, token)
    headers = {"Authorization": f"Bearer {token}"}

    with client.websocket_connect(f"/ws?token={token}") as ws:
        ws.receive_json()
        ws.send_json({"type": "connect", "connectionId": first_connection})
        first, _ = _receive_until(ws, "connected")

        ws.send_json({"type": "connect", "connectionId": second_connection})
        second, _ = _receive_until(ws, "connected")
        assert second["connectionId"] == second_connection
        assert second["sessionId"] != first["sessionId"]

        r = client.get(f"/api/sessions/{first['sessionId']}", headers=headers)
        assert r.json()["status"] == "terminated"

        ws.send_json({"type": "disconnect"})
        _receive_until(ws, "disconnected")


def test_connect_errors(client):
    _, token = _register(client)
    _, other_token = _register(client)
    foreign_connection = _create_connection(client, other_token)

    with client.websocket_connect(f"/ws?token={token}") as ws:
        ws.receive_json()

        ws.send_json({"type": "connect"})
        assert ws.receive_json() == {"type": "error", "message": "Missing connectionId"}

        ws.send_json({"type": "connect", "connectionId": 987654})
        assert ws.receive_json() == {"type": "error", "message": "Connection not found"}

        ws.send_json({"type": "connect", "connectionId": foreign_connection})
        assert ws.receive_json() == {"type": "error", "message": "Connection not found"}

        for bogus in (True, 1.5, "12abc", [1]):
            ws.send_json({"type": "connect", "connectionId": bogus})
            assert ws.receive_json() == {"type": "error", "message": "Connection not found"}


def test_input_events_are_acknowledged(client):
    _, token = _register(client)
    with client.websocket_connect(f"/ws?token={token}") as ws:
        ws.receive_json()
        for event_type in ("keyEvent", "mouseEvent", "touchEvent"):
            ws.send_json({"type": event_type, "id": "evt-1", "key": "a"})
            assert ws.receive_json() == {"type": f"{event_type}Ack", "id": "evt-1"}


def test_unknown_and_malformed_messages(client):
    _, token = _register(client)
    with client.websocket_connect(f"/ws?token={token}") as ws:
        ws.receive_json()

        ws.send_json({"type": "teleport"})
        assert ws.receive_json() == {"type": "error", "message": "Unknown message type: teleport"}

        ws.send_text("{not json")
        assert ws.receive_json() == {"type": "error", "message": "Error processing message"}

        # Channel stays usable after an error
        ws.send_json({"type": "keyEvent", "id": 7})
        assert ws.receive_json() == {"type": "keyEventAck", "id": 7}


def test_cookie_authenticates_socket(client):
    _, token = _register(client)
    client.cookies.clear()
    with client.websocket_connect("/ws", headers={"Cookie": f"access_token={token}"}) as ws:
        assert ws.receive_json()["type"] == "connectionStatus"


def test_binary_frames_are_handled_like_text(client):
    _, token = _register(client)
    with client.websocket_connect(f"/ws?token={token}") as ws:
        ws.receive_json()

        ws.send_bytes(b'{"type": "keyEvent", "id": 1}')
        assert ws.receive_json() == {"type": "keyEventAck", "id": 1}

        ws.send_bytes(b"\xff\xfe\x00")
        assert ws.receive_json() == {"type": "error", "message": "Error processing message"}

        ws.send_json({"type": "mouseEvent", "id": 2})
        assert ws.receive_json() == {"type": "mouseEventAck", "id": 2}


def test_connection_id_as_digit_string(client):
    _, token = _register(client)
    connection_id = _create_connection(client, token)
    with client.websocket_connect(f"/ws?token={token}") as ws:
        ws.receive_json()
        ws.send_json({"type": "connect", "connectionId": str(connection_id)})
        connected, _ = _receive_until(ws, "connected")
        assert connected["connectionId"] == connection_id

        ws.send_json({"type": "disconnect"})
        _receive_until(ws, "disconnected")
