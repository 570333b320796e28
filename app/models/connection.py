"""Saved remote desktop targets."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from app.core.database import Base


class Connection(Base):
    __tablename__ = "connections"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    host = Column(String(255), nullable=False)
    port = Column(Integer, default=3389)
    os = Column(String(20), default="Windows")

    # online | offline | away
    status = Column(String(20), default="offline", index=True)
    last_accessed = Column(DateTime, nullable=True)

    # {username, password, certificate, rememberPassword}
    credentials = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="connections")
    remote_sessions = relationship("RemoteSession", back_populates="connection")

    def __repr__(self):
        return f"<Connection {self.name} {self.host}:{self.port}>"
