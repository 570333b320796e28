from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship, validates
from datetime import datetime
from app.core.config import settings
from app.core.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    last_login = Column(DateTime, nullable=True)

    # Relationships
    connections = relationship("Connection", back_populates="user", cascade="all, delete-orphan")
    remote_sessions = relationship("RemoteSession", back_populates="user", cascade="all, delete-orphan")
    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.username}>"

    @property
    def name(self) -> str:
        """Display name shown on session rows; usernames double as names."""
        return self.username

    @property
    def email(self) -> str:
        return f"{self.username}@{settings.USER_EMAIL_DOMAIN}"

    @validates("username")
    def normalize_username(self, key, value):
        return value.strip() if value else value
