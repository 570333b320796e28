import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.constants import ConnectionStatus, SessionStatus
from app.models.connection import Connection
from app.models.remote_session import RemoteSession
from app.utils.errors import ConnectionAccessDenied, ConnectionNotFoundError
from app.utils.helpers import format_duration

logger = logging.getLogger(__name__)

# Fields a caller may set; ownership and status are stamped server side
EDITABLE_FIELDS = ("name", "host", "port", "os", "status", "credentials")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ConnectionService:
    @staticmethod
    def get_connection(db: Session, connection_id: int) -> Optional[Connection]:
        return db.query(Connection).filter(Connection.id == connection_id).first()

    @staticmethod
    def get_connections_by_user(db: Session, user_id: int) -> List[Connection]:
        return (
            db.query(Connection)
            .filter(Connection.user_id == user_id)
            .order_by(Connection.id)
            .all()
        )

    @staticmethod
    def get_owned_connection(db: Session, connection_id: int, user_id: int) -> Connection:
        """Existence is checked before ownership: 404 beats 403."""
        connection = ConnectionService.get_connection(db, connection_id)
        if not connection:
            raise ConnectionNotFoundError("Connection not found")
        if connection.user_id != user_id:
            raise ConnectionAccessDenied("Unauthorized access to connection")
        return connection

    @staticmethod
    def create_connection(db: Session, user_id: int, payload: dict) -> Connection:
        connection = Connection(
            name=payload["name"],
            host=payload["host"],
            port=payload.get("port"),
            os=payload.get("os"),
            credentials=payload.get("credentials"),
            user_id=user_id,
            status=ConnectionStatus.OFFLINE.value,
            last_accessed=_utcnow(),
        )
        db.add(connection)
        db.commit()
        db.refresh(connection)
        logger.info("User %s created connection %s (%s)", user_id, connection.id, connection.host)
        return connection

    @staticmethod
    def update_connection(db: Session, connection_id: int, payload: dict) -> Connection:
        """Merge the provided fields into the stored connection."""
        connection = ConnectionService.get_connection(db, connection_id)
        if not connection:
            raise ConnectionNotFoundError("Connection not found")

        for field in EDITABLE_FIELDS:
            if field in payload:
                setattr(connection, field, payload[field])
        db.commit()
        db.refresh(connection)
        return connection

    @staticmethod
    def delete_connection(db: Session, connection_id: int) -> None:
        """Hard delete that keeps session history.

        Open sessions on the connection are terminated and every session row
        is detached (connection_id NULL) in the same transaction as the
        delete, so joined session reads simply stop returning them.
        """
        connection = ConnectionService.get_connection(db, connection_id)
        if not connection:
            return

        now = _utcnow()
        try:
            sessions = (
                db.query(RemoteSession)
                .filter(RemoteSession.connection_id == connection_id)
                .all()
            )
            for remote_session in sessions:
                if remote_session.status != SessionStatus.TERMINATED.value:
                    remote_session.status = SessionStatus.TERMINATED.value
                    remote_session.end_time = now
                    remote_session.duration = format_duration(remote_session.start_time, now)
                remote_session.connection_id = None
            db.flush()
            db.delete(connection)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        logger.info("Deleted connection %s (%d sessions detached)", connection_id, len(sessions))
