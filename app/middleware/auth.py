"""Early bearer-token screening.

Requests carrying an ``Authorization`` header are checked here: malformed,
forged, revoked or expired bearer tokens are answered with 401 before any
route runs. The decoded claims land on ``request.state.auth``. Requests
without the header pass through; route dependencies still enforce auth
(including the login cookie).
"""
from datetime import datetime, timezone
import logging

from starlette.requests import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from app.core.database import SessionLocal
from app.core.security import decode_access_token
from app.models.session import UserSession

logger = logging.getLogger(__name__)


def _reject(detail: str) -> JSONResponse:
    return JSONResponse(status_code=401, content={"detail": detail})


class JWTMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        auth_header = request.headers.get("authorization")
        if not auth_header:
            return await call_next(request)

        scheme, _, token = auth_header.partition(" ")
        if scheme.lower() != "bearer" or not token:
            return _reject("Invalid authorization header")

        payload = decode_access_token(token)
        if not payload:
            return _reject("Invalid token")

        # Release the DB connection before the route takes its own
        with SessionLocal() as db:
            login_session = UserSession.for_access_token(db, int(payload["sub"]), payload["jti"])

        if not login_session:
            logger.info("Rejected revoked token for user %s on %s", payload["sub"], request.url.path)
            return _reject("Token revoked or invalid")
        if login_session.access_expired(datetime.now(timezone.utc).replace(tzinfo=None)):
            return _reject("Token expired")

        request.state.auth = payload
        return await call_next(request)
