"""Session lifecycle: creation, joined reads and termination.

Each mutation that touches both a session and its connection runs in a
single transaction, so a connection is never left ``online`` without an
active session write or ``offline`` while the terminate is rolled back.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, contains_eager

from app.core.constants import ConnectionStatus, SessionStatus
from app.models.connection import Connection
from app.models.remote_session import RemoteSession
from app.models.user import User
from app.utils.helpers import format_clock_time, format_duration, format_relative_date

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("status", "duration", "protocol", "client_info", "connected_time", "connected_date")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class RemoteSessionService:
    @staticmethod
    def _joined(db: Session) -> Query:
        # Inner joins: sessions whose connection is gone drop out here
        return (
            db.query(RemoteSession)
            .join(RemoteSession.connection)
            .join(RemoteSession.user)
            .options(
                contains_eager(RemoteSession.connection),
                contains_eager(RemoteSession.user),
            )
        )

    @staticmethod
    def get_session(db: Session, session_id: int) -> Optional[RemoteSession]:
        return db.query(RemoteSession).filter(RemoteSession.id == session_id).first()

    @staticmethod
    def get_joined_session(db: Session, session_id: int) -> Optional[RemoteSession]:
        return (
            RemoteSessionService._joined(db)
            .filter(RemoteSession.id == session_id)
            .first()
        )

    @staticmethod
    def get_sessions_by_user(db: Session, user_id: int) -> List[RemoteSession]:
        return (
            RemoteSessionService._joined(db)
            .filter(RemoteSession.user_id == user_id)
            .order_by(RemoteSession.start_time.desc(), RemoteSession.id.desc())
            .all()
        )

    @staticmethod
    def get_active_sessions(db: Session, user_id: Optional[int] = None) -> List[RemoteSession]:
        query = RemoteSessionService._joined(db).filter(
            RemoteSession.status == SessionStatus.ACTIVE.value
        )
        if user_id is not None:
            query = query.filter(RemoteSession.user_id == user_id)
        return query.order_by(RemoteSession.start_time.desc(), RemoteSession.id.desc()).all()

    @staticmethod
    def create_session(
        db: Session,
        user_id: int,
        connection_id: int,
        protocol: Optional[str] = None,
        client_info: Optional[dict] = None,
        status: str = SessionStatus.ACTIVE.value,
    ) -> RemoteSession:
        """Insert a session and flip its connection online atomically."""
        connection = db.query(Connection).filter(Connection.id == connection_id).first()
        if not connection:
            raise ValueError("Connection not found")

        now = _utcnow()
        remote_session = RemoteSession(
            user_id=user_id,
            connection_id=connection.id,
            status=status,
            start_time=now,
            protocol=protocol,
            client_info=client_info,
            connected_time=format_clock_time(now),
            connected_date=format_relative_date(now, today=now.date()),
        )
        try:
            db.add(remote_session)
            connection.status = ConnectionStatus.ONLINE.value
            connection.last_accessed = now
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

        logger.info(
            "Session %s started on connection %s for user %s",
            remote_session.id, connection.id, user_id,
        )
        return RemoteSessionService.get_joined_session(db, remote_session.id)

    @staticmethod
    def update_session(db: Session, session_id: int, payload: dict) -> Optional[RemoteSession]:
        remote_session = RemoteSessionService.get_session(db, session_id)
        if not remote_session:
            return None
        if remote_session.status == SessionStatus.TERMINATED.value:
            raise ValueError("Session already terminated")

        for field in EDITABLE_FIELDS:
            if field in payload:
                setattr(remote_session, field, payload[field])
        db.commit()
        db.refresh(remote_session)
        return remote_session

    @staticmethod
    def terminate_session(db: Session, session_id: int) -> Optional[RemoteSession]:
        """End a session and take its connection offline.

        Missing or already-terminated sessions are left untouched and
        ``None`` is returned; terminated sessions are historical records.
        """
        remote_session = RemoteSessionService.get_session(db, session_id)
        if not remote_session or remote_session.status == SessionStatus.TERMINATED.value:
            return None

        now = _utcnow()
        try:
            remote_session.status = SessionStatus.TERMINATED.value
            remote_session.end_time = now
            remote_session.duration = format_duration(remote_session.start_time, now)
            if remote_session.connection is not None:
                remote_session.connection.status = ConnectionStatus.OFFLINE.value
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

        logger.info("Session %s terminated after %s", session_id, remote_session.duration)
        return remote_session
