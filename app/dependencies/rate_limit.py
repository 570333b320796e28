"""Per-client sliding-window limiter for the credential endpoints."""
import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict

from fastapi import HTTPException, Request, status

from app.core.config import settings

logger = logging.getLogger(__name__)

# "<peer ip>:<path>" -> request timestamps inside the current window
_buckets: Dict[str, Deque[float]] = defaultdict(deque)


def reset_rate_limits() -> None:
    _buckets.clear()


def _peer_host(request: Request) -> str:
    # Socket peer only; forwarding headers are client-controlled
    client = request.client
    return client.host if client and client.host else "unknown"


async def rate_limit(request: Request) -> None:
    if not settings.RATE_LIMIT_ENABLED:
        return

    now = time.monotonic()
    key = f"{_peer_host(request)}:{request.url.path}"
    bucket = _buckets[key]

    window_start = now - settings.RATE_LIMIT_PERIOD_SECONDS
    while bucket and bucket[0] <= window_start:
        bucket.popleft()

    if len(bucket) >= settings.RATE_LIMIT_REQUESTS:
        logger.warning("Rate limit hit for %s", key)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please slow down.",
        )
    bucket.append(now)
