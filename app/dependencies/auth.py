from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.security import decode_access_token
from app.models.session import UserSession
from app.models.user import User
from app.utils.errors import Unauthorized

# auto_error=False: a missing header falls back to the login cookie, then to our 401
security = HTTPBearer(auto_error=False)


def get_current_user_from_token(token: Optional[str], db: Session) -> dict:
    """
    Verify a raw access token (REST or WebSocket) and return the caller identity:
    the token claims plus an integer ``user_id``, ``username`` and ``jti``.
    """
    if not token:
        raise Unauthorized("Not authenticated")

    payload = decode_access_token(token)
    if payload is None:
        raise Unauthorized("Invalid token")

    user_id = int(payload["sub"])
    jti = payload["jti"]

    login_session = UserSession.for_access_token(db, user_id, jti)
    if not login_session:
        raise Unauthorized("Token revoked or invalid")
    if login_session.access_expired(datetime.now(timezone.utc).replace(tzinfo=None)):
        raise Unauthorized("Token expired")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise Unauthorized("User not found")

    return {
        **payload,
        "user_id": user.id,
        "username": user.username,
        "jti": jti,
    }


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
):
    """Caller identity from the bearer token, or from the login cookie"""
    token = credentials.credentials if credentials else request.cookies.get(settings.AUTH_COOKIE_NAME)
    return get_current_user_from_token(token, db)
