"""Login sessions: one row per issued access/refresh token pair.

Not to be confused with ``RemoteSession`` (table ``sessions``), which
records remote desktop usage.
"""
from datetime import datetime
from typing import Optional
import uuid

from sqlalchemy import Column, String, DateTime, Boolean, Integer, ForeignKey
from sqlalchemy.orm import Session, relationship

from app.core.database import Base


class UserSession(Base):
    __tablename__ = "user_sessions"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # jti of the current access token and refresh token; rotated on refresh
    token_jti = Column(String(128), nullable=False, index=True)
    refresh_jti = Column(String(128), nullable=False, index=True)
    refresh_token_hash = Column(String(128), nullable=False)

    # Client that logged in
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(512), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    expires_at = Column(DateTime, nullable=True)
    refresh_expires_at = Column(DateTime, nullable=True)

    is_revoked = Column(Boolean, default=False, index=True)
    revoked_at = Column(DateTime, nullable=True)
    revoked_reason = Column(String(255), nullable=True)

    user = relationship("User", back_populates="sessions")

    def __repr__(self):
        return f"<UserSession {self.id} user={self.user_id} revoked={self.is_revoked}>"

    @classmethod
    def for_access_token(cls, db: Session, user_id: int, jti: str) -> Optional["UserSession"]:
        """Unrevoked login session that issued the given access token."""
        return (
            db.query(cls)
            .filter(cls.user_id == user_id, cls.token_jti == jti, cls.is_revoked.is_(False))
            .first()
        )

    def access_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now

    def revoke(self, reason: str, now: datetime) -> None:
        self.is_revoked = True
        self.revoked_at = now
        self.revoked_reason = reason
