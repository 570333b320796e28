"""Service layer tests."""
from datetime import datetime, timedelta

import pytest

from app.models.connection import Connection
from app.models.remote_session import RemoteSession
from app.services.connection_service import ConnectionService
from app.services.remote_session_service import RemoteSessionService
from app.utils.errors import ConnectionAccessDenied, ConnectionNotFoundError


def test_create_connection_stamps_owner_and_offline(db_session, make_user):
    user = make_user()
    connection = ConnectionService.create_connection(
        db_session,
        user_id=user.id,
        payload={"name": "Box", "host": "10.0.0.2", "port": 22, "os": "Linux", "status": "online"},
    )
    assert connection.user_id == user.id
    assert connection.status == "offline"
    assert connection.last_accessed is not None


def test_get_owned_connection_checks_existence_then_owner(db_session, make_user, make_connection):
    owner = make_user()
    stranger = make_user()
    connection = make_connection(owner.id)

    assert ConnectionService.get_owned_connection(db_session, connection.id, owner.id).id == connection.id
    with pytest.raises(ConnectionAccessDenied):
        ConnectionService.get_owned_connection(db_session, connection.id, stranger.id)
    with pytest.raises(ConnectionNotFoundError):
        ConnectionService.get_owned_connection(db_session, 987654, stranger.id)


def test_update_missing_connection_raises(db_session):
    with pytest.raises(ConnectionNotFoundError):
        ConnectionService.update_connection(db_session, 987654, {"name": "x"})


def test_create_session_sets_connection_online(db_session, make_user, make_connection):
    user = make_user()
    connection = make_connection(user.id)

    remote_session = RemoteSessionService.create_session(
        db_session, user_id=user.id, connection_id=connection.id, protocol="RDP",
    )
    assert remote_session.status == "active"
    assert remote_session.connection.id == connection.id
    assert remote_session.user.id == user.id
    assert remote_session.connected_date == "Today"

    db_session.refresh(connection)
    assert connection.status == "online"


def test_create_session_for_missing_connection(db_session, make_user):
    user = make_user()
    with pytest.raises(ValueError, match="Connection not found"):
        RemoteSessionService.create_session(db_session, user_id=user.id, connection_id=987654)


def test_terminate_session_is_idempotent(db_session, make_user, make_connection):
    user = make_user()
    connection = make_connection(user.id)
    remote_session = RemoteSessionService.create_session(db_session, user_id=user.id, connection_id=connection.id)

    ended = RemoteSessionService.terminate_session(db_session, remote_session.id)
    assert ended.status == "terminated"
    assert ended.end_time is not None
    assert ended.duration == "0m"
    db_session.refresh(connection)
    assert connection.status == "offline"

    first_end = ended.end_time
    assert RemoteSessionService.terminate_session(db_session, remote_session.id) is None
    db_session.refresh(ended)
    assert ended.end_time == first_end

    assert RemoteSessionService.terminate_session(db_session, 987654) is None


def test_terminate_records_duration(db_session, make_user, make_connection):
    user = make_user()
    connection = make_connection(user.id)
    remote_session = RemoteSession(
        user_id=user.id,
        connection_id=connection.id,
        status="active",
        start_time=datetime.utcnow() - timedelta(hours=1, minutes=24, seconds=10),
    )
    db_session.add(remote_session)
    db_session.commit()

    ended = RemoteSessionService.terminate_session(db_session, remote_session.id)
    assert ended.duration == "1h 24m"


def test_update_terminated_session_rejected(db_session, make_user, make_connection):
    user = make_user()
    connection = make_connection(user.id)
    remote_session = RemoteSessionService.create_session(db_session, user_id=user.id, connection_id=connection.id)

    updated = RemoteSessionService.update_session(db_session, remote_session.id, {"status": "idle"})
    assert updated.status == "idle"

    RemoteSessionService.terminate_session(db_session, remote_session.id)
    with pytest.raises(ValueError):
        RemoteSessionService.update_session(db_session, remote_session.id, {"status": "active"})


def test_joined_reads_skip_detached_sessions(db_session, make_user, make_connection):
    user = make_user()
    kept = make_connection(user.id, name="Kept")
    doomed = make_connection(user.id, name="Doomed")
    kept_session = RemoteSessionService.create_session(db_session, user_id=user.id, connection_id=kept.id)
    doomed_session = RemoteSessionService.create_session(db_session, user_id=user.id, connection_id=doomed.id)

    ConnectionService.delete_connection(db_session, doomed.id)

    assert db_session.query(Connection).filter(Connection.id == doomed.id).first() is None
    assert [s.id for s in RemoteSessionService.get_sessions_by_user(db_session, user.id)] == [kept_session.id]
    assert RemoteSessionService.get_joined_session(db_session, doomed_session.id) is None
    assert RemoteSessionService.get_session(db_session, doomed_session.id).connection_id is None

    active_ids = [s.id for s in RemoteSessionService.get_active_sessions(db_session)]
    assert kept_session.id in active_ids
    assert doomed_session.id not in active_ids


def test_delete_missing_connection_is_noop(db_session):
    assert ConnectionService.delete_connection(db_session, 987654) is None


def test_seed_demo_data_runs_once(db_session):
    from app.cli import seed_demo_data

    user = seed_demo_data(db_session)
    if user is None:
        pytest.skip("demo user already present in this database")

    connections = ConnectionService.get_connections_by_user(db_session, user.id)
    assert [(c.name, c.port, c.os, c.status) for c in connections] == [
        ("Development Workstation", 3389, "Windows", "online"),
        ("Production Server", 22, "Linux", "online"),
        ("Design Workstation", 5900, "MacOS", "away"),
    ]
    sessions = RemoteSessionService.get_sessions_by_user(db_session, user.id)
    assert sorted(s.protocol for s in sessions) == ["RDP", "SSH", "VNC"]
    assert sorted(s.id for s in RemoteSessionService.get_active_sessions(db_session, user.id)) == sorted(
        s.id for s in sessions if s.status == "active"
    )

    assert seed_demo_data(db_session) is None


async def test_presence_tracks_bound_session(mock_redis):
    from app.services.presence_service import PresenceService

    assert await PresenceService.current_session(4242) is None
    await PresenceService.set_online(4242, 17)
    assert await PresenceService.current_session(4242) == 17
    await PresenceService.set_offline(4242)
    assert await PresenceService.current_session(4242) is None
