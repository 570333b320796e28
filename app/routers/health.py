"""Health check endpoint."""
import logging

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from app.cache.cache_service import redis_cache
from app.core.database import engine
from app.services.channel_manager import channel_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


def _database_ok() -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        logger.exception("Health check: database connectivity failed")
        return False


@router.get("/health")
async def health() -> dict:
    """Database and cache connectivity plus the number of open viewer channels.

    The cache is optional, so only the database decides ``status``.
    """
    db_ok = await run_in_threadpool(_database_ok)
    cache_ok = await redis_cache.ping()
    return {
        "status": "ok" if db_ok else "degraded",
        "database": "ok" if db_ok else "error",
        "cache": "ok" if cache_ok else "unavailable",
        "channels": channel_manager.active_count,
    }
