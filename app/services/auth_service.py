from sqlalchemy.orm import Session
from app.models.user import User
from app.models.session import UserSession
from app.core.security import (
    verify_password, create_access_token, create_refresh_token,
    hash_token, token_matches, decode_refresh_token,
)
from app.core.config import settings
from app.services.user_service import UserService
from datetime import datetime, timedelta, timezone
from app.utils.errors import InvalidCredentialsError, UserNotFoundError
import logging

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class AuthService:

    @staticmethod
    def register(
        db: Session,
        username: str,
        password: str,
        ip_address: str,
        user_agent: str = "",
    ) -> dict:
        """
        Create the account and log it in straight away
        - Create user with hashed password
        - Issue tokens like a regular login
        """
        user = UserService.create_user(db, username=username, password=password)
        return AuthService._issue_tokens(db, user, ip_address=ip_address, user_agent=user_agent)

    @staticmethod
    def login(db: Session, username: str, password: str, ip_address: str, user_agent: str = "") -> dict:
        """
        Username/password login
        - Verify credentials (same error for unknown user and bad password)
        - Create access & refresh tokens
        - Track the login session
        """
        user = UserService.get_user_by_username(db, username.strip())
        if not user or not verify_password(password, user.password_hash or ""):
            logger.info("Failed login for %r from %s", username, ip_address)
            raise InvalidCredentialsError("Invalid username or password")

        return AuthService._issue_tokens(db, user, ip_address=ip_address, user_agent=user_agent)

    @staticmethod
    def _token_response(user: User, access_token: str, refresh_token: str) -> dict:
        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            "user_id": user.id,
            "username": user.username,
        }

    @staticmethod
    def _issue_tokens(db: Session, user: User, ip_address: str, user_agent: str = "") -> dict:
        access_token, access_jti = create_access_token(user_id=user.id, username=user.username)
        refresh_token, refresh_jti = create_refresh_token(user.id)

        now = _utcnow()
        db.add(UserSession(
            user_id=user.id,
            token_jti=access_jti,
            refresh_jti=refresh_jti,
            refresh_token_hash=hash_token(refresh_token),
            ip_address=ip_address,
            user_agent=user_agent,
            expires_at=now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_expires_at=now + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        ))
        user.last_login = now
        db.commit()
        logger.info("User %s logged in from %s", user.username, ip_address)

        return AuthService._token_response(user, access_token, refresh_token)

    @staticmethod
    def refresh_tokens(
        db: Session,
        refresh_token: str,
        ip_address: str,
        user_agent: str = "",
    ) -> dict:
        """
        Exchange a refresh token for a new pair (rotation).
        A refresh token that does not match the stored hash revokes the
        whole login session, since it was either replayed or forged.
        """
        payload = decode_refresh_token(refresh_token)
        if not payload:
            raise InvalidCredentialsError("Invalid refresh token")

        user_id = int(payload["sub"])
        session = (
            db.query(UserSession)
            .filter(
                UserSession.user_id == user_id,
                UserSession.refresh_jti == payload["jti"],
                UserSession.is_revoked.is_(False),
            )
            .first()
        )
        if not session:
            raise InvalidCredentialsError("Invalid or revoked refresh token")

        now = _utcnow()
        if session.refresh_expires_at and session.refresh_expires_at < now:
            session.revoke("refresh_expired", now)
            db.commit()
            raise InvalidCredentialsError("Refresh token expired")

        if not token_matches(refresh_token, session.refresh_token_hash):
            session.revoke("refresh_mismatch", now)
            db.commit()
            raise InvalidCredentialsError("Invalid refresh token")

        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise UserNotFoundError("User not found")

        access_token, access_jti = create_access_token(user_id=user.id, username=user.username)
        new_refresh_token, new_refresh_jti = create_refresh_token(user.id)

        session.token_jti = access_jti
        session.refresh_jti = new_refresh_jti
        session.refresh_token_hash = hash_token(new_refresh_token)
        session.refresh_expires_at = now + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
        session.expires_at = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        session.ip_address = ip_address
        session.user_agent = user_agent
        user.last_login = now
        db.commit()

        return AuthService._token_response(user, access_token, new_refresh_token)

    @staticmethod
    def logout(db: Session, user_id: int, token_jti: str) -> bool:
        """Revoke the login session that issued the given access token."""
        session = UserSession.for_access_token(db, user_id, token_jti)
        if not session:
            return False

        session.revoke("logout", _utcnow())
        session.refresh_token_hash = ""
        db.commit()
        logger.info("User %s logged out", user_id)
        return True
