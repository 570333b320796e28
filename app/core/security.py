"""Password hashing and JWT helpers.

Access and refresh tokens share one signing key and are told apart by the
``type`` claim. Each token carries a random ``jti`` so a login session row
can revoke it.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
import hashlib
import hmac
import secrets

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    if not password or not isinstance(password, str):
        raise ValueError("Password must be a non-empty string")
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not isinstance(plain_password, str) or not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # Unknown or corrupted hash format
        return False


def hash_token(token: str) -> str:
    """Refresh tokens are stored as sha256 digests, never in clear."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def token_matches(token: str, token_hash: Optional[str]) -> bool:
    if not token_hash:
        return False
    return hmac.compare_digest(hash_token(token), token_hash)


def _create_jwt(subject: int, token_type: str, lifetime: timedelta, **claims: Any) -> tuple[str, str]:
    jti = secrets.token_urlsafe(32)
    payload = {
        **claims,
        "sub": str(subject),
        "type": token_type,
        "exp": datetime.now(timezone.utc) + lifetime,
        "jti": jti,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM), jti


def create_access_token(
    user_id: int,
    username: str,
    expires_delta: Optional[timedelta] = None,
) -> tuple[str, str]:
    """Return ``(token, jti)`` for a short-lived access token."""
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _create_jwt(user_id, ACCESS_TOKEN_TYPE, lifetime, username=username)


def create_refresh_token(user_id: int) -> tuple[str, str]:
    lifetime = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return _create_jwt(user_id, REFRESH_TOKEN_TYPE, lifetime)


def decode_token(token: str, expected_type: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Verify signature and expiry; ``None`` for anything unusable."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    if expected_type and payload.get("type") != expected_type:
        return None
    if not payload.get("sub") or not payload.get("jti"):
        return None
    return payload


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    return decode_token(token, ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str) -> Optional[Dict[str, Any]]:
    return decode_token(token, REFRESH_TOKEN_TYPE)
