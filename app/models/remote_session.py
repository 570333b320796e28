"""Remote desktop session records (one per connect attempt)."""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from app.core.database import Base


class RemoteSession(Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # NULL once the connection was deleted; the row is kept as history
    connection_id = Column(Integer, ForeignKey("connections.id"), nullable=True, index=True)

    # active | idle | terminated
    status = Column(String(20), nullable=False, index=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=True)
    duration = Column(String(32), nullable=True)  # e.g. "2h 30m"
    protocol = Column(String(32), nullable=True)  # RDP, VNC, SSH, WebSocket

    # {ip, userAgent, resolution}
    client_info = Column(JSON, nullable=True)

    # Display helpers for the dashboard ("9:32 AM", "Today")
    connected_time = Column(String(16), nullable=True)
    connected_date = Column(String(32), nullable=True)

    __table_args__ = (
        Index("idx_sessions_user_status", "user_id", "status"),
    )

    user = relationship("User", back_populates="remote_sessions")
    connection = relationship("Connection", back_populates="remote_sessions")

    def __repr__(self):
        return f"<RemoteSession {self.id} {self.status}>"
