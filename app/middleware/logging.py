"""Access log for HTTP requests (WebSocket traffic is logged by the channel manager)."""
import logging
import time

from starlette.requests import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.utils.helpers import get_client_ip

logger = logging.getLogger("app.access")


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.error("%s %s from %s failed", request.method, request.url.path, get_client_ip(request))
            raise
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "%s %s from %s -> %s (%.1f ms)",
            request.method, request.url.path, get_client_ip(request), response.status_code, elapsed_ms,
        )
        return response
